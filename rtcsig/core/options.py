"""Negotiation options: which SDP rewrites to apply.

Every option is a string or None. None always means "leave the SDP alone"
for that option. Options can be loaded from a mapping or a YAML file; the
camelCase names used by browser clients (``opusStereo``) are accepted as
aliases for the snake_case fields.
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog
import yaml

from rtcsig.sdp.policy import merge_constraints


logger = structlog.get_logger(__name__)


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _to_option_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class SdpOptions:
    """SDP rewrite options.

    Fields:
        opus_stereo: "true" sets stereo=1 on Opus, "false" removes it
        opus_fec: "true" sets useinbandfec=1 on Opus, "false" removes it
        opus_dtx: "true" sets usedtx=1 on Opus, "false" removes it
        opus_max_pbr: Opus maxplaybackrate value
        audio_send_bitrate: b=AS cap (kbps) for the audio section of remote SDP
        audio_recv_bitrate: b=AS cap (kbps) for the audio section of local SDP
        video_send_bitrate: b=AS cap (kbps) for the video section of remote SDP
        video_recv_bitrate: b=AS cap (kbps) for the video section of local SDP
        video_send_initial_bitrate: Initial video send bitrate (kbps)
        video_send_codec: Preferred video send codec, NAME/RATE
        audio_send_codec: Preferred audio send codec, NAME/RATE
        audio_recv_codec: Preferred audio receive codec, NAME/RATE
        video_recv_codec: Preferred video receive codec, NAME/RATE
        video_fec: "false" strips red/ulpfec from video
    """

    opus_stereo: Optional[str] = None
    opus_fec: Optional[str] = None
    opus_dtx: Optional[str] = None
    opus_max_pbr: Optional[str] = None
    audio_send_bitrate: Optional[str] = None
    audio_recv_bitrate: Optional[str] = None
    video_send_bitrate: Optional[str] = None
    video_recv_bitrate: Optional[str] = None
    video_send_initial_bitrate: Optional[str] = None
    video_send_codec: Optional[str] = None
    audio_send_codec: Optional[str] = None
    audio_recv_codec: Optional[str] = None
    video_recv_codec: Optional[str] = None
    video_fec: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SdpOptions":
        """Build options from a mapping of snake_case or camelCase keys.

        Args:
            data: Option mapping (None gives empty options)

        Returns:
            SdpOptions instance

        Raises:
            ValueError: If the mapping contains an unknown option
        """
        if not data:
            return cls()

        names = {f.name: f.name for f in fields(cls)}
        names.update({_camel_case(f.name): f.name for f in fields(cls)})

        values: dict[str, Optional[str]] = {}
        for key, value in data.items():
            name = names.get(key)
            if name is None:
                raise ValueError(f"Unknown SDP option: {key}")
            values[name] = _to_option_value(value)

        return cls(**values)

    @classmethod
    def from_yaml(cls, file_path: str | Path) -> "SdpOptions":
        """Load options from a YAML file.

        Args:
            file_path: Path to YAML file containing a mapping of options

        Returns:
            SdpOptions instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If YAML file is invalid
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"SDP options file not found: {file_path}")

        logger.info("Loading SDP options from YAML", file_path=str(file_path))

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML file: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("YAML file must contain a dictionary")

        options = cls.from_dict(data)
        logger.info("SDP options loaded", options=options.to_dict())
        return options

    @classmethod
    def from_yaml_or_none(cls, file_path: Optional[str | Path]) -> Optional["SdpOptions"]:
        """Load options from YAML, or return None if no file is specified.

        A specified file that fails to load raises; there is no fallback.
        """
        if not file_path:
            logger.info("No SDP options file specified")
            return None

        return cls.from_yaml(file_path)

    def to_dict(self) -> dict[str, str]:
        """Options that are set, keyed by field name."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    def merged(self, other: Optional["SdpOptions"]) -> "SdpOptions":
        """Return options where the set fields of other override this one."""
        if other is None:
            return SdpOptions(**asdict(self))
        return SdpOptions.from_dict(merge_constraints(self.to_dict(), other.to_dict()))
