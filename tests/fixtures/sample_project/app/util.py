import re

from generated import schema


def slugify(text):
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") + schema.SUFFIX
