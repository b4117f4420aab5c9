"""Marshmallow schemas for the play API."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, pre_load, validate


class PlayRequestSchema(Schema):
    """Validate POST /api/play payload."""

    email = fields.Email(required=True, validate=validate.Length(max=320))
    campaign_slug = fields.Str(required=True, data_key="campaignSlug", validate=validate.Length(min=1, max=32))

    @pre_load
    def _strip(self, data: Any, **kwargs: Any) -> Any:
        # Surrounding whitespace is not an input error; lowercasing happens in the service.
        if isinstance(data, dict):
            data = dict(data)
            for key in ("email", "campaignSlug"):
                if isinstance(data.get(key), str):
                    data[key] = data[key].strip()
        return data


class PlayResponseSchema(Schema):
    won = fields.Bool(required=True)
    prize_name = fields.Str(allow_none=True, data_key="prizeName")
    segment_index = fields.Int(required=True, data_key="segmentIndex")
    total_segments = fields.Int(required=True, data_key="totalSegments")


class UnsubscribeQuerySchema(Schema):
    email = fields.Str(required=True, validate=validate.Length(min=1, max=320))
    campaign = fields.Int(required=True)
