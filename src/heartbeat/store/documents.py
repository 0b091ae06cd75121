"""Loading documents from a store, with fallback documents for empty keys."""

from collections.abc import Callable

from loguru import logger

from heartbeat.config import ROOT_ID
from heartbeat.core.importer.json_reader import node_to_dict, parse_document_data
from heartbeat.core.tree.operations import generate_id
from heartbeat.models.node import Document, Node
from heartbeat.protocols import DocumentStoreProtocol


def default_document(key: str) -> Document:
    """An empty outline: just the root."""
    return Document(key=key, root=Node(id=ROOT_ID, text="My Mindmap"))


def demo_document(key: str = "demo") -> Document:
    """The sample outline shown to visitors who have not signed in."""

    def leaf(text: str) -> Node:
        return Node(id=generate_id(), text=text)

    root = Node(
        id=ROOT_ID,
        text="Joke Video Creation",
        children=(
            leaf("1. Select joke reference image"),
            leaf("2. Type joke text"),
            leaf("3. Generate image (AI or meme tool)"),
            Node(
                id=generate_id(),
                text="4. Edit with Canva",
                children=(
                    leaf("Add overlays"),
                    leaf("Add text effects"),
                    leaf("Export as video"),
                ),
            ),
            leaf("5. Add song (background music)"),
            leaf("6. Upload to platform (YouTube, Instagram, etc.)"),
        ),
    )
    return Document(key=key, root=root)


def load_document(
    store: DocumentStoreProtocol,
    key: str,
    *,
    fallback: Callable[[str], Document] = default_document,
) -> Document:
    """Fetch the document stored under ``key``.

    When nothing is stored yet, returns ``fallback(key)``.

    Raises:
        PersistenceError: if the store cannot be reached.
        DocumentParseError: if the stored blob is not a document.
    """
    data = store.load(key)
    if data is None:
        logger.info("No document stored under {}, starting from fallback", key)
        return fallback(key)
    root = parse_document_data(data)
    logger.debug("Loaded document {}", key)
    return Document(key=key, root=root)


def document_payload(document: Document) -> dict:
    """The blob written to the store for a document."""
    return node_to_dict(document.root)


def fallback_for(key: str) -> Callable[[str], Document]:
    """The demo key starts from the sample outline; every other key starts empty."""
    return demo_document if key == "demo" else default_document
