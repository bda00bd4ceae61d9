# sitegen: Markdown blog -> static site
"""
Build stages:
- content_loader: Markdown + YAML front matter -> ContentItem
- template_engine: Markdown conversion and Jinja2 themes -> RenderedPage
- publisher: staged output writer and the build pipeline
- preview: local server with debounced live rebuild
"""
