from datetime import datetime

from flask_login import UserMixin
from marshmallow import fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema

from scripti18n import bcrypt, db, ma


class CatalogHeader(db.Model):
    __tablename__ = "catalog_headers"
    id = db.Column('catalog_header_id', db.Integer, primary_key=True)
    locale = db.Column(db.String(20), nullable=False, index=True)
    domain = db.Column(db.String(120), nullable=False, index=True)
    plural_forms = db.Column(db.String(), nullable=False, default='nplurals=2; plural=n != 1;')
    __table_args__ = (db.UniqueConstraint('locale', 'domain', name='uq_catalog_header'),)


class Translation(db.Model):
    __tablename__ = "translations"
    id = db.Column('translation_id', db.Integer, primary_key=True)
    locale = db.Column(db.String(20), nullable=False, index=True)
    domain = db.Column(db.String(120), nullable=False, index=True)
    context = db.Column(db.String(), nullable=True)
    msgid = db.Column(db.String(), nullable=False)
    # One form per plural; a single-element list for singular strings.
    msgstr = db.Column(db.JSON, nullable=False, default=list)

    @property
    def catalog_key(self):
        if self.context:
            return f"{self.context}\x04{self.msgid}"
        return self.msgid


class CatalogHeaderSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = CatalogHeader
        load_instance = False
        exclude = ('id',)


class TranslationSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Translation
        load_instance = False


class TranslationEntrySchema(ma.Schema):
    """One entry of a ``POST /api/translations/<domain>/`` payload."""

    msgid = fields.String(required=True, validate=validate.Length(min=1))
    context = fields.String(load_default=None, allow_none=True)
    msgstr = fields.List(fields.String(), required=True, validate=validate.Length(min=1))


class CatalogUpdateSchema(ma.Schema):
    locale = fields.String(required=True, validate=validate.Length(min=1))
    plural_forms = fields.String(load_default=None, allow_none=True)
    entries = fields.List(fields.Nested(TranslationEntrySchema), required=True)


class User(db.Model, UserMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def set_password(self, raw_password):
        self.password_hash = bcrypt.generate_password_hash(raw_password).decode('utf-8')

    def check_password(self, raw_password):
        return bcrypt.check_password_hash(self.password_hash, raw_password)
