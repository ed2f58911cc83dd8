import logging

from fastapi import FastAPI, APIRouter, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

import image_bridge
import story_engine
from config import settings, setup_logging
from errors import UpstreamError, ValidationError
from exporter import DocumentExporter
from schemas import (
    ChoicesRequest,
    ChoicesResponse,
    ContinueRequest,
    ContinueResponse,
    ErrorResponse,
    ExportRequest,
    GrammarCheckRequest,
    ImageRequest,
    ImageResponse,
    ModeInfo,
    ModesResponse,
    SuggestionSet,
)
from story_model import MODES, OUTPUT_FORMATS, Story

setup_logging()
log = logging.getLogger("taleteller")

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(
    prefix=settings.API_PREFIX,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)

exporter = DocumentExporter()


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    # Upstream detail was logged where it happened; the client gets the summary
    return JSONResponse(status_code=500, content={"error": exc.message})


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/modes", response_model=ModesResponse)
def list_modes():
    return ModesResponse(
        modes=[ModeInfo(value=value, **info) for value, info in MODES.items()],
        output_formats=list(OUTPUT_FORMATS),
    )


@router.post("/grammar-check", response_model=SuggestionSet, response_model_exclude_none=True)
def grammar_check(request: GrammarCheckRequest):
    log.info("Checking grammar for %s scene (%d chars)", request.mode, len(request.text))
    return story_engine.grammar_check(request.text, request.mode)


@router.post("/generate-choices", response_model=ChoicesResponse)
def generate_choices(request: ChoicesRequest):
    log.info("Generating choices for %s story", request.mode)
    choices = story_engine.generate_choices(request.story_context, request.mode, request.current_scene)
    return ChoicesResponse(choices=choices)


@router.post("/continue-scene", response_model=ContinueResponse)
def continue_scene(request: ContinueRequest):
    log.info("Continuing %s story", request.mode)
    continuation = story_engine.continue_scene(request.story_context, request.mode, request.selected_choice)
    return ContinueResponse(continuation=continuation)


@router.post("/generate-image", response_model=ImageResponse)
def generate_image(request: ImageRequest):
    return ImageResponse(image=image_bridge.generate_image(request.prompt))


@router.post("/export-pdf")
def export_pdf(request: ExportRequest):
    if request.mode not in MODES:
        raise ValidationError(f"Unknown story mode: {request.mode}")
    story = Story()
    for scene in request.scenes:
        story.append(scene.text, origin_choice=scene.origin_choice)

    document = exporter.export(story, request.mode)
    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
