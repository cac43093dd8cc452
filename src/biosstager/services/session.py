"""Staging session: orchestrates detection, catalog, media and acquisition."""

import shutil
from typing import Optional
import logging

from biosstager.errors import BiosStagerError, ScratchAreaError
from biosstager.models.config import UpdaterConfig
from biosstager.models.firmware import BoardIdentity, FirmwareRecord
from biosstager.models.media import AccessPointLease
from biosstager.models.session import ScratchArea, StagingResult
from biosstager.models.status import Outcome, SessionStage
from biosstager.services.acquisition import AcquisitionPipeline
from biosstager.services.catalog import CatalogClient
from biosstager.services.media import MediaResolver
from biosstager.services.platform import PlatformProbe
from biosstager.services.process import CommandRunner
from biosstager.services.version import extract_version, needs_update


class StagingSession:
    """Runs one staging operation and owns everything it must undo.

    The session owns the scratch area and the lease collection. Cleanup runs
    on every exit path, including KeyboardInterrupt, SystemExit and task
    cancellation, and is fully synchronous so it completes even while the
    event loop is being torn down.
    """

    def __init__(
        self,
        config: Optional[UpdaterConfig] = None,
        platform: Optional[PlatformProbe] = None,
        catalog: Optional[CatalogClient] = None,
        media: Optional[MediaResolver] = None,
        acquisition: Optional[AcquisitionPipeline] = None,
        runner: Optional[CommandRunner] = None,
    ):
        """Initialize staging session.

        Args:
            config: UpdaterConfig (defaults if None)
            platform: PlatformProbe instance (built from config if None)
            catalog: CatalogClient instance (built from config if None)
            media: MediaResolver instance (built from config if None)
            acquisition: AcquisitionPipeline instance (built from config if None)
            runner: CommandRunner shared by the default platform probe and media
                resolver (default runner if None)
        """
        self.logger = logging.getLogger("biosstager.session")
        self.config = config or UpdaterConfig()
        runner = runner or CommandRunner()
        self.platform = platform or PlatformProbe(
            supported_vendors=self.config.supported_vendors, runner=runner
        )
        self.catalog = catalog or CatalogClient(
            catalog_url=self.config.catalog_url,
            site=self.config.catalog_site,
            timeout=self.config.catalog_timeout,
        )
        self.media = media or MediaResolver(
            mount_base=self.config.mount_base,
            mount_slots=self.config.mount_slots,
            filesystem=self.config.filesystem,
            transport=self.config.transport,
            mounts_file=self.config.mounts_file,
            runner=runner,
        )
        self.acquisition = acquisition or AcquisitionPipeline(
            payload_extension=self.config.payload_extension
        )

        self.scratch = ScratchArea(root=self.config.scratch_root)
        self.leases: list[AccessPointLease] = []
        self.stage = SessionStage.INIT

    def _enter(self, stage: SessionStage) -> None:
        self.logger.debug(f"Stage: {self.stage.value} -> {stage.value}")
        self.stage = stage

    async def run(self) -> StagingResult:
        """Run the session to completion.

        Returns:
            StagingResult with outcome up_to_date or staged

        Raises:
            BiosStagerError: Exactly one typed error naming the failing stage
        """
        try:
            result = await self._run_stages()
        except BaseException as e:
            if isinstance(e, BiosStagerError):
                self.logger.error(f"Staging failed during {self.stage.value}: {e}")
            else:
                self.logger.warning(
                    f"Staging interrupted during {self.stage.value}: {type(e).__name__}"
                )
            self.cleanup()
            self._enter(SessionStage.FAILED)
            raise

        self.cleanup()
        self._enter(SessionStage.DONE)
        return result

    async def _run_stages(self) -> StagingResult:
        self._prepare_scratch()

        self._enter(SessionStage.IDENTIFY_BOARD)
        board = self.platform.board_identity()

        self._enter(SessionStage.READ_CURRENT_VERSION)
        current = extract_version(self.platform.firmware_string())
        self.logger.info(f"Current BIOS version: {current}")

        self._enter(SessionStage.QUERY_CATALOG)
        record = await self.catalog.query_latest(board)

        self._enter(SessionStage.COMPARE_VERSIONS)
        latest = extract_version(record.version)
        self.logger.info(f"Latest BIOS version: {latest}")

        if not needs_update(current, latest):
            self._enter(SessionStage.UP_TO_DATE)
            self.logger.info(
                f"BIOS is already up to date (current: {current}, latest: {latest})"
            )
            return StagingResult(
                outcome=Outcome.UP_TO_DATE,
                current_version=current,
                latest_version=latest,
                release_date=record.release_date,
                board=board,
            )

        self.logger.info(f"Update available: {current} -> {latest}")
        return await self._stage_update(board, record, current, latest)

    async def _stage_update(
        self,
        board: BoardIdentity,
        record: FirmwareRecord,
        current: str,
        latest: str,
    ) -> StagingResult:
        self._enter(SessionStage.RESOLVE_MEDIA)
        destination = self.media.resolve(self.leases)
        self.logger.info(f"Target USB drive: {destination}")

        self._enter(SessionStage.ACQUIRE)
        archive = await self.acquisition.download(record.download_url, self.scratch)
        extraction_root = self.acquisition.extract(archive, self.scratch)
        payload = self.acquisition.locate_payload(extraction_root)

        self._enter(SessionStage.STAGE)
        staged_path = self.acquisition.stage(payload, destination, latest)

        self._enter(SessionStage.READY)
        return StagingResult(
            outcome=Outcome.STAGED,
            current_version=current,
            latest_version=latest,
            staged_path=staged_path,
            release_date=record.release_date,
            board=board,
        )

    def _prepare_scratch(self) -> None:
        """Recreate the scratch root empty, dropping leftovers of crashed runs."""
        root = self.scratch.root
        try:
            if root.exists():
                self.logger.debug(f"Removing stale scratch directory {root}")
                shutil.rmtree(root)
            root.mkdir(parents=True)
        except OSError as e:
            raise ScratchAreaError(f"Cannot prepare scratch directory {root}: {e}") from e

    def cleanup(self) -> None:
        """Remove the scratch area and release leases created by this session.

        Idempotent. Failures are logged and never raised.
        """
        previous = self.stage
        self._enter(SessionStage.CLEANUP)

        root = self.scratch.root
        try:
            shutil.rmtree(root)
            self.logger.info("Cleaned up temporary files")
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Failed to remove scratch directory {root}: {e}")

        try:
            self.media.release(self.leases)
        except Exception as e:
            self.logger.warning(f"Failed to release media after {previous.value}: {e}")
