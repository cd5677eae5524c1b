"""
static-csp - Content-Security-Policy headers for static site builds
"""

__version__ = "0.1.0"

from static_csp.csp.aggregator import HeaderAggregation, split_to_global_and_local
from static_csp.csp.extractor import HeaderRecord, create_file_processor
from static_csp.csp.policies import merge_with_default_policies
from static_csp.csp.serializer import build_csp_array

__all__ = [
    'HeaderAggregation',
    'HeaderRecord',
    'build_csp_array',
    'create_file_processor',
    'merge_with_default_policies',
    'split_to_global_and_local',
]
