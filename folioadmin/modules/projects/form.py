"""Project editor form: a new entry, or an existing record being edited."""

from .synchronizer import DEFAULT_LINK

REQUIRED_FIELDS = ('title', 'brand', 'description')

STATE_NEW = 'new'
STATE_EDITING = 'editing'


class FormValidationError(Exception):
    def __init__(self, missing):
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = list(missing)


def _empty_fields():
    return {'title': '', 'brand': '', 'description': '', 'tags': '', 'link': DEFAULT_LINK}


class ProjectForm:
    """
    Holds the editor's field values, the pending image and the preview.

    Submitting in the new state creates a record and clears the form; submitting
    while editing updates that record and returns to the new state. A failed
    submission keeps everything the operator typed.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.fields = _empty_fields()
        self.selected_image = None
        self.preview_url = ''
        self.editing_id = None

    @property
    def state(self):
        return STATE_NEW if self.editing_id is None else STATE_EDITING

    def update_fields(self, data):
        for key in self.fields:
            if key in data and data[key] is not None:
                value = data[key]
                if key == 'tags' and isinstance(value, (list, tuple)):
                    value = ', '.join(str(t) for t in value)
                self.fields[key] = str(value)

    def begin_edit(self, record):
        # The stored image is only previewed; it is not re-encoded or resubmitted
        self.editing_id = record['id']
        self.fields = {
            'title': record.get('title') or '',
            'brand': record.get('brand') or '',
            'description': record.get('description') or '',
            'tags': ', '.join(record.get('tags') or []),
            'link': record.get('link') or DEFAULT_LINK,
        }
        self.preview_url = record.get('image_url') or ''
        self.selected_image = None

    def cancel(self):
        self.reset()

    def select_image(self, data_url):
        self.selected_image = data_url
        self.preview_url = data_url

    def validate(self):
        missing = [f for f in REQUIRED_FIELDS if not self.fields.get(f, '').strip()]
        if missing:
            raise FormValidationError(missing)

    def submit(self, synchronizer):
        """Create or update through the synchronizer.

        Returns the stored record, or None when the store call failed.
        """
        self.validate()
        if self.editing_id is not None:
            record = synchronizer.update(self.editing_id, self.fields, image=self.selected_image)
        else:
            record = synchronizer.create(self.fields, image=self.selected_image)
        if record is not None:
            self.reset()
        return record

    def to_dict(self):
        return {
            'state': self.state,
            'editing_id': self.editing_id,
            'fields': dict(self.fields),
            'preview_url': self.preview_url,
            'has_new_image': self.selected_image is not None,
        }
