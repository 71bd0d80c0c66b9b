import fastapi


async def http_exc_404_not_found(entity: str) -> Exception:
    return fastapi.HTTPException(status_code=fastapi.status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


async def http_exc_404_no_active_session() -> Exception:
    return fastapi.HTTPException(status_code=fastapi.status.HTTP_404_NOT_FOUND, detail="No active session found")
