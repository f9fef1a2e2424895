"""
Spritesheet pipeline coordinator.
Runs listing, decoding, deduplication, layout, composition and output in order,
keeping per-step timing and counters and separating per-tile from fatal errors.
"""

import time
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Union
from dataclasses import dataclass, field

from PIL import Image

from .config import SheetConfig
from .errors import (
    SheetifyError, DecodeError, EmptyInputError, GeometryError, TileSizeMismatchError
)
from .processing.atlas import (
    Atlas, AtlasComposer, AtlasGeometry, AtlasLayoutPlanner, AtlasValidator, LayoutPolicy
)
from .processing.dedup import Deduplicator
from .processing.tiles import Tile, TileDecoder
from .sources.base import TileEntry, TileSource
from .sources.directory import DirectoryTileSource
from .utils.image import ImageUtils
from .utils.pool import BoundedPool, TaskResult


class PipelineStep(Enum):
    """Enumeration of pipeline steps, in execution order."""
    LIST = "list"
    DECODE = "decode"
    DEDUPE = "dedupe"
    LAYOUT = "layout"
    COMPOSE = "compose"
    WRITE = "write"


@dataclass
class StepResult:
    """Result of a pipeline step execution."""
    step: PipelineStep
    success: bool
    duration: float
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class PipelineState:
    """Current state of the pipeline execution."""
    current_step: Optional[PipelineStep] = None
    completed_steps: Set[PipelineStep] = field(default_factory=set)
    failed_steps: Set[PipelineStep] = field(default_factory=set)
    step_results: Dict[PipelineStep, StepResult] = field(default_factory=dict)
    start_time: Optional[float] = None
    tiles_found: int = 0
    tiles_decoded: int = 0
    decode_failures: int = 0
    size_mismatches: int = 0
    duplicates: int = 0
    unique_tiles: int = 0
    geometry: Optional[AtlasGeometry] = None
    atlas: Optional[Atlas] = None
    output_path: Optional[Path] = None


class PipelineError(SheetifyError):
    """Fatal pipeline failure, tagged with the step it happened in."""

    def __init__(self, message: str, step: Optional[PipelineStep] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.step = step
        self.cause = cause


Encoder = Callable[[Image.Image, int], bytes]
Writer = Callable[[bytes, Union[str, Path]], Path]


class SheetPipeline:
    """
    Builds one deduplicated spritesheet from a tile source.

    Tile decoding runs on a bounded thread pool; every other step runs
    sequentially on already collected data. A tile that fails to decode or
    has the wrong size is logged and left out. Anything else stops the run
    with a PipelineError.
    """

    STEP_ORDER = [
        PipelineStep.LIST,
        PipelineStep.DECODE,
        PipelineStep.DEDUPE,
        PipelineStep.LAYOUT,
        PipelineStep.COMPOSE,
        PipelineStep.WRITE,
    ]

    def __init__(self, config: SheetConfig,
                 source: Optional[TileSource] = None,
                 decoder: Optional[TileDecoder] = None,
                 encoder: Optional[Encoder] = None,
                 writer: Optional[Writer] = None,
                 on_decoded: Optional[Callable[[TaskResult], Any]] = None,
                 on_listed: Optional[Callable[[int], Any]] = None):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration
            source: Tile source, defaults to config.input_dir
            decoder: Tile decoder, defaults to a Pillow decoder for config.sprite_size
            encoder: Image -> bytes callable, defaults to PNG
            writer: Writes encoded bytes to a path
            on_decoded: Called once per tile as its decode finishes
            on_listed: Called with the tile count once listing finishes
        """
        self.config = config
        self.source = source or DirectoryTileSource(config.input_dir, config.extension)
        self.decoder = decoder or TileDecoder(config.sprite_size)
        self.encoder = encoder or ImageUtils.encode_png
        self.writer = writer or ImageUtils.write_bytes
        self.on_decoded = on_decoded
        self.on_listed = on_listed
        self.state = PipelineState()
        self.logger = self._setup_logging()

        self._entries: List[TileEntry] = []
        self._decoded: List[Optional[Tile]] = []
        self._unique: List[Tile] = []

        self._step_handlers: Dict[PipelineStep, Callable[[], Dict[str, Any]]] = {
            PipelineStep.LIST: self._execute_list_step,
            PipelineStep.DECODE: self._execute_decode_step,
            PipelineStep.DEDUPE: self._execute_dedupe_step,
            PipelineStep.LAYOUT: self._execute_layout_step,
            PipelineStep.COMPOSE: self._execute_compose_step,
            PipelineStep.WRITE: self._execute_write_step,
        }

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the pipeline."""
        logger = logging.getLogger("sheetify")
        logger.setLevel(getattr(logging, self.config.log_level.upper(), logging.INFO))

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def run(self, dry_run: bool = False) -> PipelineState:
        """
        Run the pipeline.

        Args:
            dry_run: Stop after composition without encoding or writing

        Returns:
            Final pipeline state

        Raises:
            PipelineError: On any fatal failure
        """
        steps = self.STEP_ORDER
        if dry_run:
            steps = [step for step in steps if step is not PipelineStep.WRITE]

        self.logger.info(f"Building spritesheet from {self.source.describe()}")
        self.state.start_time = time.time()

        try:
            for step in steps:
                self._execute_step(step)
        finally:
            self._generate_execution_summary()

        return self.state

    def _execute_step(self, step: PipelineStep):
        """Execute a single step with timing and error handling."""
        self.state.current_step = step
        self.logger.debug(f"Executing step: {step.value}")

        start_time = time.time()

        try:
            data = self._step_handlers[step]()
        except Exception as e:
            duration = time.time() - start_time
            message = e.message if isinstance(e, SheetifyError) else str(e)
            self.state.step_results[step] = StepResult(
                step=step,
                success=False,
                duration=duration,
                message=f"Step {step.value} failed: {message}",
                errors=[message]
            )
            self.state.failed_steps.add(step)
            self.logger.error(f"Step {step.value} failed after {duration:.2f}s: {message}")
            raise PipelineError(message, step, cause=e) from e

        duration = time.time() - start_time
        warnings = data.pop("warnings", [])
        self.state.step_results[step] = StepResult(
            step=step,
            success=True,
            duration=duration,
            message=f"Step {step.value} completed successfully",
            data=data,
            warnings=warnings
        )
        self.state.completed_steps.add(step)
        self.logger.debug(f"Step {step.value} completed in {duration:.2f}s")

    # Step execution methods
    def _execute_list_step(self) -> Dict[str, Any]:
        self._entries = self.source.list_entries()
        self.state.tiles_found = len(self._entries)

        if not self._entries:
            raise EmptyInputError(
                f"No {self.config.extension} images found in {self.source.describe()}"
            )

        self.logger.info(f"Found {len(self._entries)} images.")
        if self.on_listed is not None:
            self.on_listed(len(self._entries))
        self.logger.debug(f"Images sorted: {', '.join(entry.name for entry in self._entries)}")
        return {"tiles_found": len(self._entries)}

    def _decode_entry(self, entry: TileEntry) -> Tile:
        return self.decoder.decode(entry.index, entry.name, self.source.read_bytes(entry))

    def _execute_decode_step(self) -> Dict[str, Any]:
        pool = BoundedPool(self.config.concurrency_limit, thread_name_prefix="sheetify-decode")
        results = pool.run(
            [(entry.index, entry) for entry in self._entries],
            self._decode_entry,
            on_result=self.on_decoded
        )

        names = {entry.index: entry.name for entry in self._entries}
        warnings = []
        self._decoded = []

        for result in results:
            if result.ok:
                self._decoded.append(result.value)
                continue

            self._decoded.append(None)
            error = result.error
            if isinstance(error, TileSizeMismatchError):
                self.state.size_mismatches += 1
                self.logger.warning(f"Dropping tile: {error.message}")
            elif isinstance(error, DecodeError):
                self.state.decode_failures += 1
                self.logger.warning(f"Dropping tile: {error.message}")
            else:
                self.state.decode_failures += 1
                self.logger.error(f"Unexpected error decoding {names[result.index]}: {error!r}")
            warnings.append(str(error))

        self.state.tiles_decoded = sum(1 for tile in self._decoded if tile is not None)
        if self.state.tiles_decoded == 0:
            raise EmptyInputError(f"None of the {len(self._entries)} images could be decoded")

        return {
            "tiles_decoded": self.state.tiles_decoded,
            "decode_failures": self.state.decode_failures,
            "size_mismatches": self.state.size_mismatches,
            "warnings": warnings,
        }

    def _execute_dedupe_step(self) -> Dict[str, Any]:
        deduplicator = Deduplicator()
        self._unique = deduplicator.dedupe(self._decoded)
        self.state.duplicates = len(deduplicator.duplicates)
        self.state.unique_tiles = len(self._unique)

        self.logger.info(
            f"{self.state.unique_tiles} unique tiles, {self.state.duplicates} duplicates skipped"
        )
        return {"unique_tiles": self.state.unique_tiles, "duplicates": self.state.duplicates}

    def _execute_layout_step(self) -> Dict[str, Any]:
        planner = AtlasLayoutPlanner(
            LayoutPolicy(self.config.layout),
            max_columns=self.config.max_columns,
            max_texture_size=self.config.max_texture_size
        )
        geometry = planner.plan(len(self._unique), self.config.sprite_size)
        self.state.geometry = geometry

        self.logger.info(
            f"Layout {geometry.columns}x{geometry.rows} cells, "
            f"{geometry.atlas_width}x{geometry.atlas_height}px ({geometry.policy.value})"
        )
        return {
            "columns": geometry.columns,
            "rows": geometry.rows,
            "width": geometry.atlas_width,
            "height": geometry.atlas_height,
        }

    def _execute_compose_step(self) -> Dict[str, Any]:
        atlas = AtlasComposer().compose(self.state.geometry, self._unique)

        errors = AtlasValidator().validate(atlas)
        if errors:
            raise GeometryError("Composed atlas failed validation: " + "; ".join(errors))

        self.state.atlas = atlas
        # Decoded tiles are no longer needed once they are in the atlas
        self._decoded = []
        self._unique = []
        return {"tiles_placed": len(atlas.placements)}

    def _execute_write_step(self) -> Dict[str, Any]:
        self.logger.info("All images processed. Saving spritesheet...")
        data = self.encoder(self.state.atlas.to_image(), self.config.compression_level)
        output_path = self.writer(data, self.config.output_path)
        self.state.output_path = Path(output_path)

        self.logger.info(f"Spritesheet saved successfully: {output_path}")
        return {"output_path": str(output_path), "bytes_written": len(data)}

    def _generate_execution_summary(self):
        """Log execution summary."""
        total_duration = time.time() - (self.state.start_time or time.time())

        self.logger.info("=" * 60)
        self.logger.info("SPRITESHEET BUILD SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Total execution time: {total_duration:.2f}s")
        self.logger.info(f"Images found: {self.state.tiles_found}")
        self.logger.info(f"Images decoded: {self.state.tiles_decoded}")
        self.logger.info(f"Decode failures: {self.state.decode_failures}")
        self.logger.info(f"Size mismatches: {self.state.size_mismatches}")
        self.logger.info(f"Duplicates skipped: {self.state.duplicates}")
        self.logger.info(f"Unique tiles placed: {self.state.unique_tiles}")

        if self.state.failed_steps:
            self.logger.info("Failed steps:")
            for step in self.state.failed_steps:
                result = self.state.step_results.get(step)
                if result:
                    self.logger.info(f"  - {step.value}: {result.message}")

        self.logger.info("Step execution times:")
        for step, result in self.state.step_results.items():
            status = "✓" if result.success else "✗"
            self.logger.info(f"  {status} {step.value}: {result.duration:.2f}s")

        self.logger.info("=" * 60)
