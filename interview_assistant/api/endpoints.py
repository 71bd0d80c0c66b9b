import fastapi

from interview_assistant.api.routes.chat import router as chat_router
from interview_assistant.api.routes.evaluation import router as evaluation_router
from interview_assistant.api.routes.interviews import router as interviews_router
from interview_assistant.api.routes.sessions import router as sessions_router
from interview_assistant.api.routes.users import router as users_router

router = fastapi.APIRouter()


@router.get("/health", status_code=200, tags=["health"])
async def health_check():
    return {"status": "healthy", "service": "interview-assistant-backend"}


router.include_router(router=users_router)
router.include_router(router=sessions_router)
router.include_router(router=interviews_router)
router.include_router(router=evaluation_router)
router.include_router(router=chat_router)
