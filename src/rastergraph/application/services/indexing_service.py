from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rastergraph.core.solr_names import SYMBOL, solr_name
from rastergraph.core.time import to_solr_date
from rastergraph.domain.models.resource import Resource


class IndexProjector:
    """Builds flat search documents from resource attributes.

    ``project`` is a pure function of the resource: every populated declared
    field becomes one ``<field><suffix>`` key and unset fields are left out.
    """

    def project(self, resource: Resource) -> dict[str, Any]:
        document: dict[str, Any] = {}
        for spec in resource.populated_fields():
            values = list(resource.attributes[spec.name])
            key = solr_name(spec.name, spec.index_type)
            if spec.index_type == "date":
                document[key] = to_solr_date(values[0])
            else:
                document[key] = values
        return document

    def document_for(self, resource: Resource, parent_ids: Iterable[str] = ()) -> dict[str, Any]:
        document: dict[str, Any] = {
            "id": resource.id,
            f"has_model{SYMBOL}": [resource.model],
        }
        parents = list(parent_ids)
        if parents:
            document[f"member_of_ids{SYMBOL}"] = parents
        document.update(self.project(resource))
        return document
