from datetime import date, datetime


class DictMixin:
    """Column-name -> value dict, with dates rendered as ISO strings."""

    def to_dict(self):
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            data[column.name] = value
        return data
