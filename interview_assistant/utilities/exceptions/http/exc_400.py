import fastapi


async def http_exc_400_field_required(message: str) -> Exception:
    return fastapi.HTTPException(status_code=fastapi.status.HTTP_400_BAD_REQUEST, detail=message)


async def http_exc_400_invalid_field(field: str, reason: str) -> Exception:
    return fastapi.HTTPException(
        status_code=fastapi.status.HTTP_400_BAD_REQUEST,
        detail=f"Invalid {field}: {reason}",
    )
