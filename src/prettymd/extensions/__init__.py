"""Python-Markdown extensions backing the prettymd transform stages."""
