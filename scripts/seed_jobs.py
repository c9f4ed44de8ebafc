"""
Seed script — uploads a handful of sample documents for demo purposes.

Usage:
    python -m scripts.seed_jobs            # upload only
    python -m scripts.seed_jobs --approve  # upload and approve, so workers pick them up

This creates:
- 1 single-copy, all-pages job
- 1 multi-copy job with a page range
- 1 job with a scattered page selection
- 1 job that stays PENDING for the approver (never approved, even with --approve)

Run this after `docker compose up` to populate the system with demo data.
"""

import argparse

import httpx

BASE_URL = "http://localhost:8000"

SAMPLE_PDF = (
    b"%PDF-1.4\n1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
    b"2 0 obj << /Type /Pages /Kids [] /Count 0 >> endobj\n"
    b"trailer << /Root 1 0 R >>\n%%EOF\n"
)


def seed(approve: bool = False):
    client = httpx.Client(base_url=BASE_URL, timeout=10.0)

    jobs = [
        ("lecture-notes.pdf", {"copies": "1", "pageRange": "ALL"}, True),
        ("lab-handout.pdf", {"copies": "25", "pageRange": "1-2"}, True),
        ("thesis-draft.pdf", {"copies": "2", "pageRange": "1-3,7,10-12"}, True),
        ("poster.pdf", {"copies": "1"}, False),
    ]

    print(f"Uploading {len(jobs)} documents to {BASE_URL}...\n")

    for filename, form, approvable in jobs:
        resp = client.post(
            "/api/jobs/upload",
            files={"file": (filename, SAMPLE_PDF, "application/pdf")},
            data=form,
        )
        resp.raise_for_status()
        job = resp.json()["data"]

        if approve and approvable:
            resp = client.put(f"/api/jobs/{job['id']}/approve")
            resp.raise_for_status()
            job = resp.json()["data"]

        print(
            f"  [{job['status']}] {filename} x{job['copies']} "
            f"pages={job['page_range']} (id: {job['id'][:8]}...)"
        )

    print("\nDone!")
    print("Queue:      curl http://localhost:8000/api/jobs/queue/summary")
    print("Stats:      curl http://localhost:8000/api/jobs/stats")
    print("List jobs:  curl http://localhost:8000/api/jobs/")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Upload sample print jobs")
    parser.add_argument("--approve", action="store_true", help="approve the uploads right away")
    seed(approve=parser.parse_args().approve)
