from typing import List, Optional, Sequence, TypeVar
from scimcore.exceptions import InvalidValue
from scimcore.schemas import QueryParameters, Resource
from scimcore.services.predicate import PredicateCompiler
from scimcore.utils import apply_count_limit

R = TypeVar("R", bound=Resource)


class QueryExecutor:
    """Filters and pages an already materialised listing; never touches storage."""

    def __init__(self, compiler: PredicateCompiler):
        self.compiler = compiler

    def execute(self, all_resources: Sequence[R], parameters: Optional[QueryParameters]) -> List[R]:
        if parameters is None:
            raise InvalidValue("Query parameters are required")
        if not parameters.schema_identifier or not parameters.schema_identifier.strip():
            raise InvalidValue("Query parameters must name a schema")
        if parameters.alternate_filters is None:
            raise InvalidValue("Query parameters must carry alternate filters (empty matches everything)")

        predicate = self.compiler.compile(parameters.alternate_filters)
        results = [resource for resource in all_resources if predicate(resource)]
        return apply_count_limit(results, parameters.pagination)
