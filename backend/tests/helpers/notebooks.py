import nbformat
from nbformat import NotebookNode


def make_notebook(*sources: str, markdown: tuple[str, ...] = ()) -> NotebookNode:
    """Notebook with one code cell per source, followed by any markdown cells."""
    nb = nbformat.v4.new_notebook()
    nb.cells = [nbformat.v4.new_code_cell(source) for source in sources]
    nb.cells.extend(nbformat.v4.new_markdown_cell(text) for text in markdown)
    return nb


def notebook_bytes(*sources: str) -> bytes:
    return nbformat.writes(make_notebook(*sources)).encode("utf-8")
