"""
Print Shop Backend - REST API for a print-order storefront

This package provides a FastAPI-based web service behind the print shop
front-end. It enables:

- PDF and Word document uploads stored as individual blobs
- Order placement with a generated id, timestamp and status
- Admin review of orders and uploaded files
- A static credential check for the admin dashboard

Persistence is deliberately simple: one JSON array file per resource type,
read in full and rewritten in full on every request.

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - order_store / file_store: Order and upload persistence
    - json_store: Whole-file JSON list storage
    - auth: Admin credential verification
    - configuration: Config loading and merging logic
    - upload_selection: Client-side file queue and page-range derivation
    - client: HTTP helpers for the API

Usage:
    Run the API server with:
        uvicorn print_shop_backend.main:app --reload --host 0.0.0.0 --port 3001

    Or use the console script, which reads PORT and APP_ENV:
        print-shop-backend
"""
