"""Extraction d'une piste audio compressée avec ffmpeg (sous-processus asynchrone)."""

from __future__ import annotations

import asyncio
import uuid
from pathlib import Path

import structlog

log = structlog.get_logger(__name__, component="audio_extractor")

_STDERR_TAIL = 500


class AudioExtractionError(Exception):
    """ffmpeg absent, en échec, ou sortie vide."""


class FfmpegAudioExtractor:
    """Produit un `.m4a` AAC mono à partir d'un fichier audio ou vidéo."""

    def __init__(self, binary: str = "ffmpeg", bitrate: str = "128k") -> None:
        self.binary = binary
        self.bitrate = bitrate

    def command(self, source: Path, dest: Path) -> list[str]:
        return [
            self.binary,
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(source),
            "-vn",
            "-ac",
            "1",
            "-c:a",
            "aac",
            "-b:a",
            self.bitrate,
            str(dest),
        ]

    async def extract(self, source: Path, dest_dir: Path) -> Path:
        dest = dest_dir / f"audio-{uuid.uuid4().hex}.m4a"
        log.info("ffmpeg started", source=str(source), dest=str(dest))
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command(source, dest),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise AudioExtractionError(f"ffmpeg binary not found: {self.binary}") from exc
        try:
            _, stderr = await proc.communicate()
        except asyncio.CancelledError:
            proc.kill()
            dest.unlink(missing_ok=True)
            raise
        if proc.returncode != 0:
            dest.unlink(missing_ok=True)
            tail = stderr.decode(errors="replace")[-_STDERR_TAIL:].strip()
            raise AudioExtractionError(f"Audio extraction failed: {tail or proc.returncode}")
        if not dest.exists() or dest.stat().st_size == 0:
            dest.unlink(missing_ok=True)
            raise AudioExtractionError("Audio extraction produced an empty file")
        log.info("ffmpeg finished", dest=str(dest), size=dest.stat().st_size)
        return dest
