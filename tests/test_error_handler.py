from backoffice.error_handler import ErrorHandler, LicenseRequiredError, UpstreamError


def test_handle_exception_returns_payload():
    eh = ErrorHandler()
    out = eh.handle_exception(Exception("boom"), context={"k": "v"})
    assert out["success"] is False
    assert "internal error" in out["message"].lower()
    assert "boom" in out["metadata"]["error"]
    assert out["metadata"]["context"] == {"k": "v"}


def test_handle_upstream_error_keeps_messages():
    eh = ErrorHandler()
    out = eh.handle_upstream_error(UpstreamError("Product not found: X", messages=["a", "b"], operation="product lookup"))
    assert out == {
        "success": False,
        "message": "Product not found: X",
        "messages": ["a", "b"],
        "operation": "product lookup",
    }


def test_handle_license_error_flags_expiry():
    out = ErrorHandler().handle_license_error(LicenseRequiredError("License expired (01/01/2026)"))
    assert out["licenseExpired"] is True
    assert out["message"] == "License expired (01/01/2026)"
