"""
modules/editor_state.py — The image being edited and its undo history.

One EditorSession lives in st.session_state per browser session. Every tool
produces a new ImageState; the previous one is pushed onto the history so it
can be restored with Undo.

Uploaded images are dropped automatically once the session has been idle for
SESSION_CONFIG["auto_delete_seconds"]. Any change (load, apply, undo) restarts
the countdown.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace

from config import DOWNLOAD_SUFFIX, IMAGE_FORMATS, SESSION_CONFIG
from modules.image_processor import decode_supported, load_image


@dataclass(frozen=True)
class ImageState:
    data: bytes
    width: int
    height: int
    size: int  # bytes
    mime_type: str
    name: str

    @classmethod
    def from_upload(cls, data: bytes, name: str) -> "ImageState":
        """
        Build the first state from an uploaded file.

        The MIME type comes from the decoded bytes, not the browser. Formats the
        editor cannot write back (e.g. GIF) are re-encoded as PNG so that the
        stored bytes always match mime_type. Width and height are the upright
        (EXIF-rotated) dimensions.

        Raises:
            EncodeUnavailable: If the upload is not a readable image
        """
        img, data, mime_type = decode_supported(data)
        return cls(
            data=data,
            width=img.width,
            height=img.height,
            size=len(data),
            mime_type=mime_type,
            name=name,
        )

    def replace(self, data: bytes, mime_type: str | None = None) -> "ImageState":
        """
        Successor state after a tool ran.

        Without a mime_type the bytes are treated like an upload: the type is
        detected, and unsupported formats are re-encoded as PNG.
        """
        if mime_type is None:
            img, data, mime_type = decode_supported(data)
        else:
            img = load_image(data)
        return replace(
            self,
            data=data,
            width=img.width,
            height=img.height,
            size=len(data),
            mime_type=mime_type,
        )


@dataclass
class EditorSession:
    current: ImageState | None = None
    history: list[ImageState] = field(default_factory=list)
    touched_at: float | None = None
    version: int = 0  # bumped on every change; widget keys include it so inputs reset

    def _touch(self, now: float | None) -> None:
        self.touched_at = time.time() if now is None else now
        self.version += 1

    def load(self, state: ImageState, now: float | None = None) -> None:
        self.current = state
        self.history = []
        self._touch(now)

    def apply(self, state: ImageState, now: float | None = None) -> None:
        if self.current is not None:
            self.history.append(self.current)
        self.current = state
        self._touch(now)

    def run_tool(self, operation, now: float | None = None) -> ImageState:
        """
        Run a tool on the decoded current image and apply the result.

        Args:
            operation: Callable taking a Pillow image and returning
                       (encoded_bytes, mime_type); mime_type may be None to detect it

        Returns:
            The new current state

        Raises:
            Whatever operation or decoding raises (EncodeUnavailable, ValueError);
            the session is left unchanged in that case
        """
        data, mime_type = operation(load_image(self.current.data))
        new_state = self.current.replace(data, mime_type)
        self.apply(new_state, now)
        return new_state

    def undo(self, now: float | None = None) -> bool:
        """Restore the previous state. Returns False if there was nothing to undo."""
        if not self.history:
            return False
        self.current = self.history.pop()
        self._touch(now)
        return True

    def clear(self) -> None:
        self.current = None
        self.history = []
        self.touched_at = None
        self.version += 1

    @property
    def has_edits(self) -> bool:
        return len(self.history) > 0

    def seconds_left(self, now: float | None = None) -> float:
        if self.current is None or self.touched_at is None:
            return 0.0
        now = time.time() if now is None else now
        return max(0.0, SESSION_CONFIG["auto_delete_seconds"] - (now - self.touched_at))

    def is_expired(self, now: float | None = None) -> bool:
        return self.current is not None and self.seconds_left(now) <= 0


def download_filename(name: str, mime_type: str) -> str:
    """
    Name offered for download: "holiday.png" as JPEG -> "holiday_soloresizer.jpg".
    """
    dot = name.rfind(".")
    stem = name[:dot] if dot > 0 else name

    if mime_type in IMAGE_FORMATS:
        extension = IMAGE_FORMATS[mime_type]["extension"]
    else:
        extension = mime_type.split("/")[-1] or "jpg"

    return f"{stem}{DOWNLOAD_SUFFIX}.{extension}"
