"""FastAPI application entry point."""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from tax_export.config import settings
from tax_export.api.routes import chains, wallets, transactions, reports

# Import chain families to register them
import tax_export.chains.cosmos  # noqa: F401
import tax_export.chains.evm  # noqa: F401
import tax_export.chains.native  # noqa: F401

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = settings.log_level):
    """Configure root logging once for the process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    # request lines for every upstream page are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


configure_logging()

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Multi-chain wallet history export for Awaken Tax"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chains.router, prefix=f"{settings.api_prefix}/chains", tags=["chains"])
app.include_router(wallets.router, prefix=f"{settings.api_prefix}/wallets", tags=["wallets"])
app.include_router(transactions.router, prefix=f"{settings.api_prefix}/transactions", tags=["transactions"])
app.include_router(reports.router, prefix=f"{settings.api_prefix}/reports", tags=["reports"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Multi-chain Tax Export API",
        "version": settings.api_version,
        "docs": "/docs"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
