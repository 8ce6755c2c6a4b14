import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables from .env file before the app modules read them
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401  (registers the verified-facts tables)
from .database import Base, engine
from .routes.plan import NO_CACHE_HEADERS
from .routes.plan import router as plan_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    Base.metadata.create_all(bind=engine)
    print("Starting Business Plan Generator")
    print(f"   Together Key:   {' Configured' if os.getenv('TOGETHER_API_KEY') else ' Not set'}")
    print(f"   OpenRouter Key: {' Configured' if os.getenv('OPENROUTER_API_KEY') else ' Not set'}")
    print(f"   Google CSE:     {' Configured' if os.getenv('GOOGLE_CSE_API_KEY') and os.getenv('GOOGLE_CSE_ID') else ' Not set (heuristics only)'}")
    print(f"   NewsAPI Key:    {' Configured' if os.getenv('NEWS_API_KEY') else ' Not set (no sentiment)'}")
    print("   Ready to generate business plans!")

    yield

    print("Shutting down Business Plan Generator")


app = FastAPI(
    title="AI Business Plan Generator",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",      # Next.js dev server
        "http://127.0.0.1:3000",      # Alternative localhost
        "http://localhost:3001",      # Alternative port
    ],
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
)

app.include_router(plan_router)


@app.get(
    "/",
    summary="API Root",
    description="Welcome endpoint with API information",
    tags=["General"]
)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "AI Business Plan Generator",
        "version": "0.1.0",
        "description": "Research-backed business plans from a single idea",
        "docs": "/docs",
        "endpoints": {
            "generatePlan": "POST /generatePlan - Generate a business plan",
            "health": "GET /health - Service health check"
        }
    }


@app.get(
    "/health",
    summary="Global Health Check",
    description="Check if the API server is running",
    tags=["General"]
)
async def health():
    """Global health check endpoint."""
    return {
        "status": "healthy",
        "service": "business-plan-generator",
        "version": "0.1.0"
    }


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors with an actionable message."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request body: {field + ' - ' if field else ''}{first.get('msg', 'malformed JSON')}"
    return JSONResponse(status_code=400, content={"error": message}, headers=NO_CACHE_HEADERS)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if os.getenv("DEBUG", "false").lower() == "true" else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "true").lower() == "true",
    )
