"""
Prepr → Content Engine Sync

Pulls articles from the Prepr GraphQL API, flattens their content
blocks into HTML and feeds them into a content engine as Article nodes.
"""

__version__ = "1.0.0"
