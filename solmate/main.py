from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import chat, health, llm, prices, swap, tools, tracking, transactions, wallet
from .config import settings
from .dependencies import get_services, set_services
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    services = get_services()
    await services.start()
    try:
        yield
    finally:
        await services.close()
        set_services(None)


# Create FastAPI app
app = FastAPI(
    title="SolMate API",
    description="Conversational Solana wallet assistant backend",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(chat.router, tags=["Chat"])
app.include_router(tools.router, tags=["Tools"])
app.include_router(swap.router, tags=["Swap"])
app.include_router(transactions.router, tags=["Transactions"])
app.include_router(wallet.router, tags=["Wallet"])
app.include_router(prices.router, tags=["Prices"])
app.include_router(tracking.router, tags=["Tracking"])
app.include_router(llm.router, tags=["LLM"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "SolMate API",
        "version": "0.1.0",
        "description": "Conversational Solana wallet assistant backend",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "solmate.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
