"""Content-addressed asset staging for the generated site."""

from .asset_pipeline import (
    AssetPipeline,
    ExcludePredicate,
    atomic_copy,
    exclude_substrings,
    fingerprint_file,
    is_variant_asset,
    staged_name,
)
from .models import Asset, StagedAsset
from .errors import AssetPipelineError, CopyError

__all__ = [
    'AssetPipeline',
    'ExcludePredicate',
    'atomic_copy',
    'exclude_substrings',
    'fingerprint_file',
    'is_variant_asset',
    'staged_name',
    'Asset',
    'StagedAsset',
    'AssetPipelineError',
    'CopyError',
]
