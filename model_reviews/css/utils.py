import pathlib

CSS_DIR = pathlib.Path(__file__).parent


def load_css(*names: str) -> str:
    """Concatenate stylesheets from this folder; a missing file becomes a CSS comment."""
    chunks = []
    for name in names:
        try:
            chunks.append((CSS_DIR / name).read_text(encoding="utf-8"))
        except FileNotFoundError:
            chunks.append(f"/* missing CSS file: {name} */")
    return "\n".join(chunks)
