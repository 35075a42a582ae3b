"""
Sample sources: remote providers, the offline catalog, and the
background fetcher.
"""

from .base import SampleSource, SourceError
from .xeno_canto import XenoCantoSource, bounding_boxes
from .freesound import FreesoundSource
from .static import StaticSampleSource, load_offline_sources
from .fetcher import SampleFetcher, FetchRequest, FetchResult

__all__ = [
    'SampleSource',
    'SourceError',
    'XenoCantoSource',
    'bounding_boxes',
    'FreesoundSource',
    'StaticSampleSource',
    'load_offline_sources',
    'SampleFetcher',
    'FetchRequest',
    'FetchResult',
]
