"""Deferred image transformation pipeline.

A pipeline is a source (fetch+decode, or a blank canvas) plus an ordered list
of steps. Nothing runs until ``build``/``render``/``resolve`` is awaited; the
steps are then folded over the source image in call order and the first
failure aborts the run. Pillow work runs in worker threads so concurrent
invocations keep the event loop free.

Pipelines are single-use: every chain call consumes the receiver and returns
a new pipeline, and touching a consumed pipeline raises ``UsageError``::

    response = await (
        ImagePipeline.from_url(url)
        .resize(Dimension.pct(0.5), Dimension.pct(0.5))
        .grayscale()
        .border(4, 4, 4, 4, color="000000")
        .build("PNG")
    )
"""
import asyncio
from dataclasses import dataclass
from time import perf_counter
from typing import Awaitable, Callable, List, Optional, Tuple, Union

import azure.functions as func
from requests.structures import CaseInsensitiveDict

from src.media import imaging
from src.media.border import add_border
from src.media.color import parse_hex_color
from src.media.encoder import encode_state
from src.media.geometry import resolve_extent
from src.media.image_state import ImageState
from src.media.overlay import AlignmentLike, overlay_image
from src.shared.http_client import build_response, fetch
from src.shared.logging_utils import debug as log_debug, info as log_info, warning as log_warning
from src.specs.common.enums import FilterKind, ImageFormat
from src.specs.common.errors import FetchError, ImagePipeError, UsageError
from src.specs.models.geometry import DimensionLike

Source = Callable[[], Awaitable[ImageState]]
FormatLike = Union[ImageFormat, str, None]
FilterLike = Union[FilterKind, str, None]

_ROTATIONS = {
    90: imaging.rotate90,
    180: imaging.rotate180,
    270: imaging.rotate270,
}


@dataclass(frozen=True)
class _Step:
    name: str
    apply: Callable[..., ImageState]
    joins: Tuple["ImagePipeline", ...] = ()


class ImagePipeline:
    def __init__(self, source: Source, steps: Tuple[_Step, ...] = (), *, trace_id: Optional[str] = None):
        self._source = source
        self._steps = tuple(steps)
        self._trace_id = trace_id
        self._consumed = False

    # -- construction -----------------------------------------------------

    @classmethod
    def from_url(cls, url: str, format: FormatLike = None, *, trace_id: Optional[str] = None) -> "ImagePipeline":
        """Fetch and decode ``url``; the format is sniffed from the bytes unless given."""

        async def source() -> ImageState:
            start = perf_counter()
            fetched = await fetch(url)
            if not fetched.ok:
                raise FetchError(
                    f"Fetch of {url} returned status {fetched.status}",
                    status=fetched.status,
                    details={"url": url},
                )
            fmt = ImageFormat.parse(format) if format is not None else imaging.sniff_format(fetched.body)
            image = await asyncio.to_thread(imaging.decode, fetched.body, fmt)
            log_info(
                trace_id,
                "pipeline:source_fetched",
                url=url,
                status=fetched.status,
                format=fmt.value,
                width=image.width,
                height=image.height,
                durationMs=int((perf_counter() - start) * 1000),
            )
            return ImageState(image=image, headers=fetched.headers, format=fmt)

        return cls(source, trace_id=trace_id)

    @classmethod
    def blank(cls, width: int, height: int, color: str, *, trace_id: Optional[str] = None) -> "ImagePipeline":
        """A canvas filled with ``color``; no headers and no source format."""

        async def source() -> ImageState:
            if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
                raise UsageError(
                    "Blank canvas needs a positive integer width and height",
                    details={"width": width, "height": height},
                )
            rgba = parse_hex_color(color)
            return ImageState(image=imaging.new_canvas(width, height, rgba), headers=CaseInsensitiveDict())

        return cls(source, trace_id=trace_id)

    # -- chaining ---------------------------------------------------------

    def _check_live(self) -> None:
        if self._consumed:
            raise UsageError("Pipeline already consumed; keep chaining from the pipeline it returned")

    def _take(self) -> "ImagePipeline":
        self._check_live()
        self._consumed = True
        return ImagePipeline(self._source, self._steps, trace_id=self._trace_id)

    def _then(self, name: str, apply: Callable[..., ImageState], joins: Tuple["ImagePipeline", ...] = ()) -> "ImagePipeline":
        taken = self._take()
        return ImagePipeline(taken._source, taken._steps + (_Step(name, apply, joins),), trace_id=taken._trace_id)

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self._steps]

    def resize(
        self,
        width: DimensionLike,
        height: DimensionLike,
        *,
        exact: bool = False,
        filter: FilterLike = None,
    ) -> "ImagePipeline":
        def apply(state: ImageState) -> ImageState:
            kind = FilterKind.parse(filter)
            w = resolve_extent(state.width, width, name="width")
            h = resolve_extent(state.height, height, name="height")
            resized = (imaging.resize_exact if exact else imaging.resize)(state.image, w, h, kind)
            return state.with_image(resized)

        return self._then("resize", apply)

    def thumbnail(self, width: DimensionLike, height: DimensionLike, *, exact: bool = False) -> "ImagePipeline":
        def apply(state: ImageState) -> ImageState:
            w = resolve_extent(state.width, width, name="width")
            h = resolve_extent(state.height, height, name="height")
            thumb = (imaging.thumbnail_exact if exact else imaging.thumbnail)(state.image, w, h)
            return state.with_image(thumb)

        return self._then("thumbnail", apply)

    def crop(self, x: DimensionLike, y: DimensionLike, width: DimensionLike, height: DimensionLike) -> "ImagePipeline":
        def apply(state: ImageState) -> ImageState:
            left = resolve_extent(state.width, x, name="x", allow_zero=True)
            top = resolve_extent(state.height, y, name="y", allow_zero=True)
            w = resolve_extent(state.width, width, name="width")
            h = resolve_extent(state.height, height, name="height")
            return state.with_image(imaging.crop(state.image, left, top, w, h))

        return self._then("crop", apply)

    def rotate(self, degrees: int) -> "ImagePipeline":
        def apply(state: ImageState) -> ImageState:
            turn = _ROTATIONS.get(degrees)
            if turn is None:
                raise UsageError("Can only rotate 90, 180, or 270", details={"degrees": degrees})
            return state.with_image(turn(state.image))

        return self._then("rotate", apply)

    def flip(self, horizontal: bool = True) -> "ImagePipeline":
        def apply(state: ImageState) -> ImageState:
            flipped = imaging.flip_horizontal(state.image) if horizontal else imaging.flip_vertical(state.image)
            return state.with_image(flipped)

        return self._then("flip", apply)

    def grayscale(self) -> "ImagePipeline":
        return self._then("grayscale", lambda state: state.with_image(imaging.grayscale(state.image)))

    def blur(self, sigma: float) -> "ImagePipeline":
        return self._then("blur", lambda state: state.with_image(imaging.blur(state.image, sigma)))

    def sharpen(self, sigma: float, threshold: int) -> "ImagePipeline":
        return self._then("sharpen", lambda state: state.with_image(imaging.unsharpen(state.image, sigma, threshold)))

    def brighten(self, value: int) -> "ImagePipeline":
        return self._then("brighten", lambda state: state.with_image(imaging.adjust_brightness(state.image, value)))

    def contrast(self, value: float) -> "ImagePipeline":
        return self._then("contrast", lambda state: state.with_image(imaging.adjust_contrast(state.image, value)))

    def border(
        self,
        top: DimensionLike,
        right: DimensionLike,
        bottom: DimensionLike,
        left: DimensionLike,
        color: Optional[str] = None,
    ) -> "ImagePipeline":
        return self._then("border", lambda state: add_border(state, top, right, bottom, left, color))

    def overlay(
        self,
        other: "ImagePipeline",
        x: DimensionLike = 0,
        y: DimensionLike = 0,
        *,
        x_align: AlignmentLike = None,
        y_align: AlignmentLike = None,
        x_repeat: bool = False,
        y_repeat: bool = False,
    ) -> "ImagePipeline":
        """Composite another pipeline's result on top of this one.

        Both pipelines start acquiring their source at the same time; the
        other one is joined when this step runs.
        """
        self._check_live()
        if not isinstance(other, ImagePipeline):
            raise UsageError("overlay expects another ImagePipeline")
        if other is self:
            raise UsageError("A pipeline cannot be overlaid onto itself")
        joined = other._take()

        def apply(state: ImageState, top: ImageState) -> ImageState:
            return overlay_image(state, top, x, x_align, x_repeat, y, y_align, y_repeat)

        return self._then("overlay", apply, joins=(joined,))

    # -- execution --------------------------------------------------------

    def resolve(self) -> Awaitable[ImageState]:
        """Run the pipeline and return the final ImageState."""
        return self._take()._run()

    def render(self, format: FormatLike = None) -> Awaitable[Tuple[CaseInsensitiveDict, bytes]]:
        """Run the pipeline and encode it, returning ``(headers, body)``."""
        return self._take()._render(format)

    def build(self, format: FormatLike = None) -> Awaitable[func.HttpResponse]:
        """Run the pipeline and wrap the encoded image in an HttpResponse."""
        return self._take()._build(format)

    async def _render(self, format: FormatLike) -> Tuple[CaseInsensitiveDict, bytes]:
        state = await self._run()
        headers, body = await asyncio.to_thread(encode_state, state, format)
        log_info(
            self._trace_id,
            "pipeline:encoded",
            contentType=headers.get("Content-Type"),
            bytes=len(body),
        )
        return headers, body

    async def _build(self, format: FormatLike) -> func.HttpResponse:
        headers, body = await self._render(format)
        return build_response(body, headers)

    async def _run(self) -> ImageState:
        # Joined pipelines are scheduled up front so their fetches overlap ours.
        joins = [asyncio.ensure_future(dep._run()) for step in self._steps for dep in step.joins]
        pending = iter(joins)
        start = perf_counter()
        try:
            state = await self._source()
            for index, step in enumerate(self._steps):
                joined = [await next(pending) for _ in step.joins]
                step_start = perf_counter()
                try:
                    state = await asyncio.to_thread(step.apply, state, *joined)
                except ImagePipeError as exc:
                    log_warning(self._trace_id, "pipeline:step_failed", step=step.name, index=index, error=str(exc))
                    raise
                except (ValueError, OSError) as exc:
                    log_warning(self._trace_id, "pipeline:step_failed", step=step.name, index=index, error=str(exc))
                    raise UsageError(f"{step.name} failed: {exc}", details={"step": step.name, "index": index}) from exc
                log_debug(
                    self._trace_id,
                    "pipeline:step",
                    step=step.name,
                    index=index,
                    width=state.width,
                    height=state.height,
                    durationMs=int((perf_counter() - step_start) * 1000),
                )
        finally:
            _discard(joins)
        log_info(
            self._trace_id,
            "pipeline:resolved",
            steps=len(self._steps),
            width=state.width,
            height=state.height,
            durationMs=int((perf_counter() - start) * 1000),
        )
        return state

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else "pending"
        return f"<ImagePipeline {state} steps={self.step_names}>"


def _discard(tasks: List["asyncio.Future[ImageState]"]) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()
        elif not task.cancelled():
            # Retrieve the exception so an unjoined failure is not reported as unhandled.
            task.exception()
