from mediagen.schemas.media import (
    Artifact,
    GeneratedImage,
    GenerationRequest,
    ImageAspectRatio,
    ReferenceImage,
    VideoAspectRatio,
    infer_mime_type,
)

__all__ = [
    "Artifact",
    "GeneratedImage",
    "GenerationRequest",
    "ImageAspectRatio",
    "ReferenceImage",
    "VideoAspectRatio",
    "infer_mime_type",
]
