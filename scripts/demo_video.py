"""Demo script: generate an image from a prompt, then animate it with Veo.

Run with:
    GEMINI_API_KEY=... python3 scripts/demo_video.py "a cat on a windowsill"

Writes the first generated image and the resulting video to the current
directory. Press Ctrl+C while polling to abandon the video job.
"""

import asyncio
import logging
import os
import signal
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from mediagen import session as studio  # noqa: E402
from mediagen.config import get_settings  # noqa: E402
from mediagen.errors import GenerationError  # noqa: E402

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("demo_video")


async def main(prompt: str) -> int:
    session = studio.StudioSession()
    cancel = asyncio.Event()
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancel.set)
    except NotImplementedError:
        pass

    print(f"=== {settings.APP_NAME} ===")
    try:
        print(f"--- Generating image for: {prompt}")
        images = await studio.generate(session, prompt, aspect_ratio="16:9")
        with open("demo_image.jpeg", "wb") as f:
            f.write(images[0].data)
        print("Saved demo_image.jpeg")

        print("--- Creating video")
        studio.open_video(session, 0)
        artifact = await studio.create_video(
            session,
            prompt,
            aspect_ratio="16:9",
            on_progress=lambda status: print(studio.progress_message(status)),
            cancel=cancel,
        )
        ext = artifact.mime_type.split("/")[-1]
        with open(f"demo_video.{ext}", "wb") as f:
            f.write(artifact.data)
        print(f"Saved demo_video.{ext} ({len(artifact.data)} bytes)")
        return 0
    except GenerationError as e:
        logger.error("Demo failed: %s", e)
        print(f"Failed: {studio.friendly_error_message(e)}")
        return 1
    finally:
        await session.aclose()


if __name__ == "__main__":
    text = " ".join(sys.argv[1:]) or "a cat sitting on a sunny windowsill"
    sys.exit(asyncio.run(main(text)))
