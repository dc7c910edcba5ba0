"""
Design Request Backend - intake service for website design requests

This package provides a FastAPI-based web service that accepts a client's
website design request from a web form and turns it into durable records:

- Field validation and content neutralization
- Append-only local ledger of accepted requests
- PDF rendering of each request
- Best-effort upload of the PDF to S3-compatible object storage
- Best-effort relational mirror of each record
- Masked administrative listing

Only validation and the local ledger write can fail a submission; the
document, upload and mirror stages are logged and skipped on failure.

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - intake: Submission pipeline and partial-failure policy
    - validation: Field rules and text neutralization
    - records: Canonical record construction
    - ledger: JSON-file ledger with atomic rewrites
    - rendering: reportlab document builder
    - storage: Artifact publisher and S3 object storage
    - database: SQLite relational mirror
    - configuration: Layered settings (defaults, YAML, environment)

Usage:
    Run the API server with:
        uvicorn design_request_backend.main:app --reload --host 0.0.0.0 --port 8000

    Or use the development script:
        uv run uvicorn design_request_backend.main:app --reload
"""
