import pathlib

CSS_DIR = pathlib.Path(__file__).parent


def load_css(name: str) -> str:
    path = CSS_DIR / name
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return f"/* missing CSS file: {name} */"


def style_block(*names: str) -> str:
    """Concatenate the named stylesheets into one <style> tag for gr.HTML / head."""
    css = "\n".join(load_css(name) for name in names)
    return f"<style>\n{css}\n</style>"
