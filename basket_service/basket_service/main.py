"""Main entry point for the Basket Service."""

import os

import uvicorn

from basket_service.server import app

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
