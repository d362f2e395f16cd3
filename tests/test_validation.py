from storefront.application.validation import order_total, validate_order_payload


def make_payload(**overrides):
    payload = {
        "items": [{"id": "p1", "name": "Widget", "price": 100, "quantity": 2}],
        "totalPrice": 200,
        "customerInfo": {
            "email": "a@b.com",
            "name": "Jo",
            "phone": "1234567890",
            "city": "NY",
            "privacyConsent": True,
        },
    }
    payload.update(overrides)
    return payload


def test_valid_payload():
    result = validate_order_payload(make_payload())
    assert result.is_valid
    assert result.errors == []


def test_never_raises_on_garbage():
    for garbage in (None, "text", 42, [], {"items": "nope", "customerInfo": "nope"}):
        result = validate_order_payload(garbage)
        assert not result.is_valid
        assert result.errors


def test_empty_items():
    result = validate_order_payload(make_payload(items=[]))
    assert result.errors == ["items must be a non-empty array"]


def test_booleans_are_not_numbers():
    result = validate_order_payload(make_payload(
        items=[{"id": "p1", "name": "Widget", "price": True, "quantity": True}],
        totalPrice=False,
    ))
    assert len(result.errors) == 3


def test_integer_item_ids_and_whole_float_quantities_are_accepted():
    result = validate_order_payload(make_payload(
        items=[{"id": 17, "name": "Widget", "price": 9.99, "quantity": 3.0}],
    ))
    assert result.is_valid


def test_fractional_quantity_is_rejected():
    result = validate_order_payload(make_payload(
        items=[{"id": "p1", "name": "Widget", "price": 1, "quantity": 1.5}],
    ))
    assert result.errors == ["items[0].quantity must be an integer >= 1"]


def test_trimmed_lengths_are_checked():
    payload = make_payload()
    payload["customerInfo"].update(name="  J  ", city=" A ")
    result = validate_order_payload(payload)
    assert len(result.errors) == 2


def test_comment_must_be_text():
    payload = make_payload()
    payload["customerInfo"]["comment"] = 12
    assert validate_order_payload(payload).errors == ["customerInfo.comment must be a string"]


def test_total_price_wins_over_total():
    assert order_total({"total": 5, "totalPrice": 7}) == 7
    assert order_total({"total": 5}) == 5
    assert order_total({}) is None


def test_non_finite_numbers_are_rejected():
    for bad in (float("nan"), float("inf"), 10 ** 400):
        result = validate_order_payload(make_payload(
            items=[{"id": "p1", "name": "Widget", "price": bad, "quantity": bad}],
            totalPrice=bad,
        ))
        assert result.errors == [
            "items[0].price must be a non-negative number",
            "items[0].quantity must be an integer >= 1",
            "totalPrice must be a non-negative number",
        ]
