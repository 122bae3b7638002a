"""Ordered detector catalog.

Detectors run in this order within an analysis, so findings in a result keep a
stable order for a given source.
"""

from .common import Detector, Phase
from . import edge_cases, environment, error_propagation, runtime, static_review

CATALOG: tuple[Detector, ...] = (
    # Static review (line rules)
    Detector(static_review.UNCHECKED_NULL_RULE, Phase.static_review, static_review.scan_unchecked_null),
    Detector(static_review.ASYNC_WITHOUT_AWAIT_RULE, Phase.static_review, static_review.scan_async_without_await),
    Detector(static_review.NETWORK_RULE, Phase.static_review, static_review.scan_network_call),
    Detector(static_review.DATABASE_RULE, Phase.static_review, static_review.scan_database_call),
    Detector(static_review.UNDISPOSED_RULE, Phase.static_review, static_review.scan_undisposed_resource),
    # Runtime simulation
    Detector(runtime.ASYNC_VOID_RULE, Phase.runtime_simulation, runtime.scan_async_void),
    Detector(runtime.CANCELLATION_RULE, Phase.runtime_simulation, runtime.scan_missing_cancellation),
    Detector(runtime.UNBOUNDED_GROWTH_RULE, Phase.runtime_simulation, runtime.scan_unbounded_growth),
    Detector(runtime.STRING_CONCAT_RULE, Phase.runtime_simulation, runtime.scan_string_concatenation),
    Detector(runtime.OVERSIZED_ALLOCATION_RULE, Phase.runtime_simulation, runtime.scan_oversized_allocation),
    Detector(runtime.CONNECTION_POOL_RULE, Phase.runtime_simulation, runtime.scan_connection_pool),
    Detector(runtime.SHARED_STATE_RULE, Phase.runtime_simulation, runtime.scan_mutable_shared_state),
    Detector(runtime.COLLECTION_MUTATION_RULE, Phase.runtime_simulation, runtime.scan_collection_mutation),
    Detector(runtime.BROAD_CATCH_RULE, Phase.runtime_simulation, runtime.scan_broad_catch),
    # Environment & dependency checks
    Detector(environment.HARDCODED_ENDPOINT_RULE, Phase.environment, environment.scan_hardcoded_endpoints),
    Detector(environment.FILESYSTEM_RULE, Phase.environment, environment.scan_filesystem_access),
    Detector(environment.CONFIG_ACCESS_RULE, Phase.environment, environment.scan_config_access),
    Detector(environment.N_PLUS_ONE_RULE, Phase.environment, environment.scan_n_plus_one),
    Detector(environment.DATABASE_DEPENDENCY_RULE, Phase.environment, environment.scan_database_dependency),
    Detector(environment.EXTERNAL_API_RULE, Phase.environment, environment.scan_external_api_dependency),
    # Input & edge-case simulation
    Detector(edge_cases.INDEX_ACCESS_RULE, Phase.edge_case, edge_cases.scan_index_access),
    Detector(edge_cases.NULL_PARAMETER_RULE, Phase.edge_case, edge_cases.scan_null_parameters),
    Detector(edge_cases.NUMERIC_PARSE_RULE, Phase.edge_case, edge_cases.scan_numeric_parse),
    Detector(edge_cases.DIVISION_RULE, Phase.edge_case, edge_cases.scan_division),
    # Error propagation
    Detector(error_propagation.UNHANDLED_ASYNC_RULE, Phase.error_propagation, error_propagation.scan_unhandled_async),
    Detector(error_propagation.EMPTY_CATCH_RULE, Phase.error_propagation, error_propagation.scan_empty_catch),
)


def detectors_for(phase: Phase, catalog: tuple[Detector, ...] = CATALOG) -> list[Detector]:
    return [d for d in catalog if d.phase == phase]
