from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, tools
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

setup_logging()

# Create FastAPI app
app = FastAPI(
    title="Cryptoseek API",
    description="Crypto market data tools: multi-chain big swaps, Binance and LCX",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestLoggingMiddleware)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(tools.router, tags=["Tools"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Cryptoseek API",
        "version": "0.1.0",
        "description": "Crypto market data tools: multi-chain big swaps, Binance and LCX",
        "docs": "/docs",
        "health": "/healthz",
        "tools": "/tools/definitions",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cryptoseek.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
