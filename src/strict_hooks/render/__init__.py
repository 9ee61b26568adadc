"""Report renderers: stylish text and Markdown."""
