import fastapi
import uvicorn
from dotenv import load_dotenv
from fastapi.middleware.cors import CORSMiddleware

from interview_assistant.api.endpoints import router as api_endpoint_router
from interview_assistant.api.errors import register_exception_handlers
from interview_assistant.config.events import lifespan
from interview_assistant.config.manager import settings

tags_metadata = [
    {"name": "users", "description": "Candidate profiles keyed by email."},
    {"name": "sessions", "description": "Persisted UI session snapshots."},
    {"name": "interviews", "description": "Interview attempts, question slots, results and the dashboard listing."},
    {"name": "evaluation", "description": "Server-side answer grading and question supply."},
    {"name": "chat", "description": "Conversational interview flow driven by events."},
]


def initialize_backend_application() -> fastapi.FastAPI:
    load_dotenv()
    app = fastapi.FastAPI(**settings.set_backend_app_attributes, openapi_tags=tags_metadata, lifespan=lifespan)  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.IS_ALLOWED_CREDENTIALS,
        allow_methods=settings.ALLOWED_METHODS,
        allow_headers=settings.ALLOWED_HEADERS,
    )
    register_exception_handlers(app)

    app.include_router(router=api_endpoint_router, prefix=settings.API_PREFIX)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "Welcome to the Interview Assistant API",
            "version": settings.VERSION,
            "docs": settings.DOCS_URL,
            "health": f"{settings.API_PREFIX}/health",
        }

    return app


backend_app: fastapi.FastAPI = initialize_backend_application()

if __name__ == "__main__":
    uvicorn.run(
        app="interview_assistant.main:backend_app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
        workers=settings.SERVER_WORKERS,
        log_level=settings.LOGGING_LEVEL,
    )
