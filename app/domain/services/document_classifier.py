# app/domain/services/document_classifier.py
from typing import Optional

from app.domain.models.fiscal_document import DocumentKind
from app.domain.services.xml_tree import XmlTree

ROOT_NAME_TO_KIND = {
    "CTE": DocumentKind.CTE,
    "NFE": DocumentKind.NFE,
    "MDFE": DocumentKind.MDFE,
    "NFCE": DocumentKind.NFCE,
}


def classify(tree: Optional[XmlTree]) -> DocumentKind:
    """
    Clasifica el documento por el nombre local del elemento raíz.
    Nunca falla: lo que no se reconoce es DocumentKind.OTHER.
    """
    if tree is None:
        return DocumentKind.OTHER
    return ROOT_NAME_TO_KIND.get(tree.root_local_name.upper(), DocumentKind.OTHER)


def resolve_kind(tree: Optional[XmlTree], forced_kind: Optional[DocumentKind] = None) -> DocumentKind:
    # Un tipo forzado por quien llama siempre gana
    if forced_kind is not None:
        return forced_kind
    return classify(tree)
