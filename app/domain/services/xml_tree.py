# app/domain/services/xml_tree.py
from typing import Iterator, List, Optional

from lxml import etree

from app.domain.errors import EmptyContent, MalformedXml


def _new_parser() -> etree.XMLParser:
    # El texto ya llega decodificado; se fuerza UTF-8 para ignorar la
    # declaración de encoding del documento. Sin entidades externas ni red.
    return etree.XMLParser(
        encoding="utf-8",
        resolve_entities=False,
        no_network=True,
        remove_comments=False,
    )


def local_name(element) -> Optional[str]:
    """
    Nombre local (sin prefijo ni URI de namespace) de un elemento.
    Comentarios e instrucciones de procesamiento retornan None.
    """
    tag = element.tag
    if not isinstance(tag, str):
        return None
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[1]
    return tag


class XmlTree:
    """
    Árbol XML navegable por nombre local. Las cuatro variantes (CT-e, NF-e,
    MDF-e, NFC-e) usan URIs de namespace distintas para los mismos elementos,
    por eso la búsqueda nunca compara nombres calificados.
    """

    def __init__(self, root):
        self.root = root

    @property
    def root_local_name(self) -> str:
        return local_name(self.root) or ""

    def _walk(self, within=None) -> Iterator:
        # Sin `within` se recorre el documento completo, incluida la raíz.
        if within is None:
            return self.root.iter()
        return within.iterdescendants()

    def find_all(self, name: str, within=None) -> List:
        return [el for el in self._walk(within) if local_name(el) == name]

    def find_first(self, name: str, within=None):
        for el in self._walk(within):
            if local_name(el) == name:
                return el
        return None

    @staticmethod
    def text_of(element) -> str:
        """Texto concatenado del elemento y sus descendientes."""
        return "".join(element.itertext())


def parse_xml(text: str) -> XmlTree:
    """
    Parsea el texto a un XmlTree.

    Lanza EmptyContent si el texto está vacío o en blanco (antes de intentar
    el parseo) y MalformedXml si el XML no está bien formado.
    """
    if text is None or not text.strip():
        raise EmptyContent("El contenido XML no puede estar vacío")

    try:
        root = etree.fromstring(text.encode("utf-8"), parser=_new_parser())
    except etree.XMLSyntaxError as e:
        raise MalformedXml(f"XML inválido: {e}") from e
    except ValueError as e:
        raise MalformedXml(f"Error al validar XML: {e}") from e

    return XmlTree(root)
