"""
Card records handed to the deck builder.
"""

from dataclasses import dataclass


def has_audio(buffer: bytes | None) -> bool:
    """Return True if ``buffer`` holds at least one byte of audio."""
    return buffer is not None and len(buffer) > 0


@dataclass(frozen=True)
class Card:
    """One flashcard: a source/target text pair with optional audio.

    Audio buffers are raw MP3 bytes. ``None`` and empty buffers both mean
    "no audio" for that side.
    """

    source_text: str
    target_text: str
    source_audio: bytes | None = None
    target_audio: bytes | None = None

    @property
    def has_source_audio(self) -> bool:
        return has_audio(self.source_audio)

    @property
    def has_target_audio(self) -> bool:
        return has_audio(self.target_audio)

    @classmethod
    def from_dict(cls, data: dict) -> "Card":
        """Build a card from a request-style dict.

        Accepts both the camelCase shape produced upstream
        (``source``, ``target``, ``sourceAudio``, ``targetAudio``) and the
        snake_case attribute names.

        :param data: Card dictionary.
        :returns: A new :class:`Card`.
        :raises KeyError: If the source or target text is missing.
        """
        source = data["source"] if "source" in data else data["source_text"]
        target = data["target"] if "target" in data else data["target_text"]
        source_audio = data.get("sourceAudio", data.get("source_audio"))
        target_audio = data.get("targetAudio", data.get("target_audio"))
        return cls(
            source_text=source,
            target_text=target,
            source_audio=bytes(source_audio) if source_audio is not None else None,
            target_audio=bytes(target_audio) if target_audio is not None else None,
        )
