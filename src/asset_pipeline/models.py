"""Data models for the asset pipeline."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Asset:
    """A binary source file and the sha1 fingerprint of its bytes."""
    source_path: str
    fingerprint: str


@dataclass(frozen=True)
class StagedAsset:
    """An Asset placed in the output area under its content-addressed name.

    Attributes:
        asset: The source asset
        output_path: Path of the staged copy
        copied: False when an identical file was already in place
    """
    asset: Asset
    output_path: str
    copied: bool
