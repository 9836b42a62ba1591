from functools import partial


class DocumentWrapper:
    """A stored document bound to the collection it was read from."""

    def __init__(self, doc_id, doc, collection=None):
        self._id = doc_id
        self._doc = doc
        self.collection = collection

    def get(self, field, default=None):
        return self._doc.get(field, default)

    def to_dict(self) -> dict:
        return dict(self._doc)

    def __getitem__(self, field):
        return self._doc[field]

    def __setitem__(self, field, value):
        self._doc[field] = value

    def __contains__(self, field):
        return field in self._doc

    def __getattr__(self, item):
        # only reached for names not set on the instance
        schema = self.__dict__.get("collection") and self.__dict__["collection"].schema
        if schema is not None and item in schema.methods:
            return partial(schema.methods[item], self)
        try:
            return self.__dict__["_doc"][item]
        except KeyError:
            raise AttributeError(item) from None

    def __repr__(self):
        return f"<Document _id={self._id}, {self._doc}>"
