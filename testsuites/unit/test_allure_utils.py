from magento_tools.report_tools import attach_comparison, attach_file


def test_attach_file_reports_missing_files(tmp_path):
    assert attach_file(tmp_path / "missing.png") is False


def test_attach_file_existing_file(tmp_path):
    screenshot = tmp_path / "page.png"
    screenshot.write_bytes(b"\x89PNG")

    assert attach_file(screenshot, "Screenshot") is True


def test_attach_comparison_outside_allure_run_is_harmless():
    attach_comparison("http://magento.local/", "http://magento.local/admin/")
