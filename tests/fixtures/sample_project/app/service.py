import json

from . import models
from .util import slugify


def run(name):
    record = models.Record(slugify(name))
    print(json.dumps(record.as_dict()))
