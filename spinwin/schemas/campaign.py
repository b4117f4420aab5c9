"""Schemas for campaign authoring and the public play page."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

HEX_COLOR = validate.Regexp(r"^#[0-9A-Fa-f]{6}$", error="Invalid color")


class PrizeInputSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    probability = fields.Float(
        required=True,
        validate=validate.Range(min=0.01, max=1.0, error="Probability must be between 1% and 100%"),
    )
    color = fields.String(required=False, load_default="#FF6B00", validate=HEX_COLOR)
    total_quantity = fields.Integer(required=False, load_default=None, allow_none=True, validate=validate.Range(min=1))
    sort_order = fields.Integer(required=False, load_default=None, allow_none=True)


class CampaignCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    description = fields.String(required=False, load_default=None, allow_none=True, validate=validate.Length(max=1000))
    prizes = fields.List(
        fields.Nested(PrizeInputSchema),
        required=True,
        validate=validate.Length(min=1, max=20, error="Between 1 and 20 prizes are required"),
    )

    @validates_schema
    def _validate_total_probability(self, data, **kwargs):  # type: ignore[no-untyped-def]
        prizes = data.get("prizes") or []
        total = sum(float(p["probability"]) for p in prizes)
        if total > 1.0:
            raise ValidationError({"prizes": ["Total prize probability must not exceed 100%"]})


class WheelSegmentSchema(Schema):
    index = fields.Integer(required=True)
    label = fields.String(required=True)
    color = fields.String(required=True)
    is_prize = fields.Boolean(required=True, data_key="isPrize")


class PublicPrizeSchema(Schema):
    id = fields.Integer(required=True)
    name = fields.String(required=True)
    color = fields.String(required=True)
    sort_order = fields.Integer(required=True, data_key="sortOrder")
    available = fields.Boolean(required=True)


class PublicCampaignSchema(Schema):
    id = fields.Integer(required=True)
    slug = fields.String(required=True)
    name = fields.String(required=True)
    description = fields.String(allow_none=True)
    prizes = fields.List(fields.Nested(PublicPrizeSchema))
    segments = fields.List(fields.Nested(WheelSegmentSchema))
    total_segments = fields.Integer(required=True, data_key="totalSegments")
