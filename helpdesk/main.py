import logging
import threading
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from helpdesk.config import settings
from helpdesk.database import SessionLocal, init_db
from helpdesk.api import routes
from helpdesk.services.faq_index import FAQIndex
from helpdesk.services.generation import GenerationClient, GenerationStatus
from helpdesk.services.knowledge_base import load_entries
from helpdesk.services.resolver import AnswerResolver

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes.router)


def _check_generation_service(client: GenerationClient):
    app.state.generation_status = client.check_status()
    logger.info("Generation service status: %s", app.state.generation_status.value)


@app.on_event("startup")
def startup_event():
    """Open the store and the full-text index; failures here stop the server"""
    init_db()

    db = SessionLocal()
    try:
        entries = load_entries(db)
    finally:
        db.close()

    index = FAQIndex.open_or_create(settings.index_path, entries)
    generator = GenerationClient.from_settings()

    app.state.index = index
    app.state.resolver = AnswerResolver(
        index,
        generator,
        threshold=settings.match_threshold,
        use_context=settings.generation_use_context,
    )

    # Display-only status check; resolution never waits on it
    app.state.generation_status = GenerationStatus.CHECKING
    threading.Thread(target=_check_generation_service, args=(generator,), daemon=True).start()

    logger.info("Help Desk started - %d FAQ entries loaded", len(entries))


@app.on_event("shutdown")
def shutdown_event():
    """Close the full-text index"""
    index = getattr(app.state, "index", None)
    if index is not None:
        index.close()
    logger.info("Help Desk stopped")


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.app_name}",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
