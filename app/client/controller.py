"""
Gallery controller: explicit gallery state plus an action dispatch table.

The controller knows nothing about rendering. Front ends dispatch named
actions ("refresh", "search", "open", "close", "copy", "delete", "upload")
and render `controller.state` afterwards.
"""
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from app.client.clipboard import Clipboard
from app.client.formatting import COPY_LABELS, copy_text, filter_images
from app.schemas import ImageRecord

logger = logging.getLogger(__name__)

DimensionProbe = Callable[[str], Awaitable[Optional[Tuple[int, int]]]]


class GalleryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    DISPLAYING = "displaying"
    ERROR = "error"


@dataclass
class DetailView:
    """The image shown in the detail view; dimensions arrive asynchronously."""
    image: ImageRecord
    dimensions: Optional[Tuple[int, int]] = None


@dataclass
class GalleryState:
    status: GalleryStatus = GalleryStatus.IDLE
    images: List[ImageRecord] = field(default_factory=list)
    query: str = ""
    error: Optional[str] = None
    detail: Optional[DetailView] = None
    notice: Optional[str] = None

    @property
    def visible(self) -> List[ImageRecord]:
        """Cached images matching the current search query."""
        return filter_images(self.images, self.query)


class GalleryController:
    """
    Args:
        source: Object with async list_images(), upload_file(path) and
            delete_image(name), e.g. ImageHostApi or DirectRepoApi
        clipboard: Clipboard writer (defaults to the two-tier Clipboard)
        probe: Async callable returning (width, height) for an image URL;
            defaults to source.probe_dimensions when available
    """

    def __init__(
        self,
        source: Any,
        clipboard: Optional[Clipboard] = None,
        probe: Optional[DimensionProbe] = None
    ):
        self.source = source
        self.clipboard = clipboard or Clipboard()
        self.probe = probe or getattr(source, "probe_dimensions", None)
        self.state = GalleryState()
        self._probe_task: Optional[asyncio.Task] = None

        self.actions: Dict[str, Callable[..., Any]] = {
            "refresh": self.refresh,
            "search": self.search,
            "open": self.open_detail,
            "close": self.close_detail,
            "copy": self.copy,
            "delete": self.delete,
            "upload": self.upload,
        }

    async def dispatch(self, action: str, *args: Any) -> Any:
        """
        Run a named action.

        Raises:
            KeyError: For an unknown action name
        """
        handler = self.actions.get(action)
        if handler is None:
            raise KeyError(f"Unknown action: {action}")

        result = handler(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def refresh(self) -> GalleryState:
        """Fetch the image list: loading -> displaying | error."""
        self.state.status = GalleryStatus.LOADING
        self.state.error = None

        try:
            images = await self.source.list_images()
        except Exception as e:
            logger.error(f"Gallery load error: {str(e)}")
            self.state.status = GalleryStatus.ERROR
            self.state.error = str(e) or "Failed to load images"
            return self.state

        self.state.images = list(images)
        self.state.status = GalleryStatus.DISPLAYING
        return self.state

    def search(self, query: str = "") -> List[ImageRecord]:
        """Filter the cached images; never re-fetches."""
        self.state.query = query
        return self.state.visible

    def _find(self, key: Any) -> ImageRecord:
        visible = self.state.visible
        if isinstance(key, int):
            if not 0 <= key < len(visible):
                raise IndexError(f"No image at position {key}")
            return visible[key]
        for image in self.state.images:
            if image.name == key:
                return image
        raise LookupError(f"No image named {key}")

    def open_detail(self, key: Any) -> DetailView:
        """
        Show an image by visible position or by name.
        The dimension probe runs in the background and fills in
        detail.dimensions when it completes.
        """
        detail = DetailView(image=self._find(key))
        self.state.detail = detail

        if self._probe_task is not None and not self._probe_task.done():
            self._probe_task.cancel()
        if self.probe is not None:
            self._probe_task = asyncio.ensure_future(self._probe_dimensions(detail))
        return detail

    async def _probe_dimensions(self, detail: DetailView) -> None:
        try:
            dimensions = await self.probe(detail.image.url)
        except Exception as e:
            logger.warning(f"Dimension probe failed for {detail.image.name}: {str(e)}")
            return
        detail.dimensions = dimensions

    async def wait_for_dimensions(self) -> Optional[Tuple[int, int]]:
        """Await the running probe (if any) and return the detail dimensions."""
        if self._probe_task is not None:
            try:
                await self._probe_task
            except asyncio.CancelledError:
                pass
        return self.state.detail.dimensions if self.state.detail else None

    def close_detail(self) -> None:
        self.state.detail = None
        if self._probe_task is not None and not self._probe_task.done():
            self._probe_task.cancel()
        self._probe_task = None

    def copy(self, variant: str, key: Any = None) -> str:
        """
        Copy a link for an image: the one named by `key`, otherwise the one
        in the detail view.

        Returns:
            str: The copied text
        """
        if key is not None:
            image = self._find(key)
        elif self.state.detail is not None:
            image = self.state.detail.image
        else:
            raise LookupError("No image selected")

        text = copy_text(variant, image)
        tier = self.clipboard.copy(text)
        logger.debug(f"Copied {variant} for {image.name} via {tier} clipboard")
        self.state.notice = COPY_LABELS[variant]
        return text

    async def delete(self, key: Any = None) -> GalleryState:
        """Delete the given or selected image, then reload the gallery."""
        if key is not None:
            name = self._find(key).name
        elif self.state.detail is not None:
            name = self.state.detail.image.name
        else:
            raise LookupError("No image selected")

        await self.source.delete_image(name)
        self.close_detail()
        self.state.notice = "Image deleted successfully"
        return await self.refresh()

    async def upload(self, path: Any) -> GalleryState:
        """Upload a local file, then reload the gallery."""
        result = await self.source.upload_file(Path(path))
        self.state.notice = f"Uploaded {result.filename}"
        return await self.refresh()
