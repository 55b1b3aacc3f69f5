"""
Catalog CLI.

Usage:
    catalog-api serve --port 8787
    catalog-api key skills my-skill 1.0.0 SKILL.md
    catalog-api routes /catalog/skills/my-skill/latest/SKILL.md
"""

__cli_name__ = "catalog-api"
