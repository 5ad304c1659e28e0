from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from .version import __version__

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
def liveness():
    return "Progress Report Bot is running."


@router.get("/health/ready")
def ready():
    return {
        "status": "ready",
        "service": "progressbot",
        "version": __version__,
    }
