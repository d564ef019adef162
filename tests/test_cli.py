import logging

import pytest

from invoice_sap import cli

from conftest import alma_document, invoice_xml


@pytest.fixture(autouse=True)
def _detach_log_handlers():
    yield
    for handler in list(cli.logger.handlers):
        cli.logger.removeHandler(handler)
        handler.close()


def test_run_without_configuration_exits_nonzero(monkeypatch, capsys):
    for name in ("ROOT", "DESTINATION", "LOG", "REPORT"):
        monkeypatch.delenv(f"INVOICE_SAP_{name}", raising=False)
    with pytest.raises(SystemExit) as exc:
        cli.main(["run", "--root", "/srv/reader"])
    assert exc.value.code == 1
    assert "no configuration available" in capsys.readouterr().err


def test_run_writes_debug_log(reader_root, destination, tmp_path, capsys):
    (reader_root / "inbox" / "a.xml").write_text(alma_document(invoice_xml()), encoding="utf-8")
    log = tmp_path / "reader.log"

    with pytest.raises(SystemExit) as exc:
        cli.main([
            "run",
            "--root", str(reader_root),
            "--destination", str(destination),
            "--log", str(log),
        ])

    assert exc.value.code == 0
    assert "1 succeeded, 0 failed" in capsys.readouterr().out
    lines = log.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Reader [")
    assert any(line.endswith("queueing Alma XML files for processing") for line in lines)
    assert any("submitting" in line for line in lines)


def test_convert_single_file(tmp_path, capsys):
    source = tmp_path / "a.xml"
    source.write_text(alma_document(invoice_xml(), invoice_xml(uid="R", vendor="Reverse PO")), encoding="utf-8")
    output = tmp_path / "out.dat"

    with pytest.raises(SystemExit) as exc:
        cli.main(["convert", "--input", str(source), "--output", str(output)])

    assert exc.value.code == 0
    assert output.read_bytes().count(b"\r\n") == 2
    out = capsys.readouterr().out
    assert "Rendered 1 invoices" in out
    assert "R: no reverse POs permitted" in out


def test_convert_broken_file_fails(tmp_path, capsys):
    source = tmp_path / "broken.xml"
    source.write_text("<", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        cli.main(["convert", "--input", str(source)])
    assert exc.value.code == 1
    assert "Alma XML parsing errors" in capsys.readouterr().out


def test_configure_logging_without_path_adds_no_handler():
    cli.configure_logging(None)
    assert cli.logger.handlers == []
    assert cli.logger.level == logging.DEBUG
