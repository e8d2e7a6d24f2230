ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")

RENT_COLUMNS = {
    "amount": "rent_amount",
    "currency": "rent_currency",
    "period": "rent_period",
}
UTILITY_COLUMNS = {
    "included": "utilities_included",
    "not_included": "utilities_not_included",
}
AVAILABILITY_COLUMNS = {
    "status": "availability_status",
    "available_from": "available_from",
    "lease_term": "lease_term",
}
EMERGENCY_CONTACT_COLUMNS = {
    "name": "emergency_contact_name",
    "phone": "emergency_contact_phone",
    "relationship": "emergency_contact_relationship",
}

NESTED_COLUMNS = {
    "address": {f: f for f in ADDRESS_FIELDS},
    "business_info": {
        "business_name": "business_name",
        "business_type": "business_type",
        "tax_id": "tax_id",
        "license_number": "license_number",
    },
    "emergency_contact": EMERGENCY_CONTACT_COLUMNS,
    "property_details": {
        "bedrooms": "bedrooms",
        "bathrooms": "bathrooms",
        "square_feet": "square_feet",
        "floor_number": "floor_number",
        "total_floors": "total_floors",
        "year_built": "year_built",
    },
    "rent": RENT_COLUMNS,
    "utilities": UTILITY_COLUMNS,
    "availability": AVAILABILITY_COLUMNS,
}


def flatten_payload(data: dict) -> dict:
    """Map nested request blocks onto flat column names.

    Nested blocks set to ``None`` are skipped, so a partial update built with
    ``model_dump(exclude_unset=True)`` only touches the columns it names.
    """
    flat = {}
    for key, value in data.items():
        columns = NESTED_COLUMNS.get(key)
        if columns is None:
            flat[key] = value
            continue
        if value is None:
            continue
        for field, field_value in value.items():
            flat[columns[field]] = field_value
    return flat
