import io
import zipfile
import pytest
import requests
from aggstab import ingest
from aggstab.config import WorkflowConfig
from aggstab.ingest import fetch_archive, read_measurements, read_covariates


class _FakeResponse:
    def __init__(self, content=b"", status=200):
        self.content = content
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")


def _zip_bytes(files):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, text in files.items():
            zf.writestr(name, text)
    return buf.getvalue()


def test_fetch_archive_downloads_and_extracts(tmp_path, monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return _FakeResponse(_zip_bytes({"ldpsa.csv": "a,b\n1,2\n", "covariates.csv": "ssid\nA\n"}))

    monkeypatch.setattr(ingest.requests, "get", fake_get)
    config = WorkflowConfig.from_dirs(tmp_path / "raw", tmp_path / "out", archive_id="abc12")
    paths = fetch_archive(config)

    assert calls == ["https://osf.io/abc12/download"]
    assert sorted(p.name for p in paths) == ["covariates.csv", "ldpsa.csv"]
    assert (tmp_path / "raw" / "ldpsa.csv").read_text() == "a,b\n1,2\n"


def test_fetch_archive_http_error_propagates(tmp_path, monkeypatch):
    monkeypatch.setattr(ingest.requests, "get", lambda url, timeout: _FakeResponse(status=404))
    config = WorkflowConfig.from_dirs(tmp_path, tmp_path / "out", archive_id="missing")
    with pytest.raises(requests.HTTPError):
        fetch_archive(config)


def test_fetch_archive_needs_id(tmp_path):
    with pytest.raises(ValueError):
        fetch_archive(WorkflowConfig.from_dirs(tmp_path, tmp_path))


def test_fetch_archive_rejects_non_zip(tmp_path, monkeypatch):
    monkeypatch.setattr(ingest.requests, "get", lambda url, timeout: _FakeResponse(b"<html>"))
    config = WorkflowConfig.from_dirs(tmp_path, tmp_path / "out", archive_id="x")
    with pytest.raises(zipfile.BadZipFile):
        fetch_archive(config)


def test_read_tables_from_config(tmp_path, three_row_ldpsa):
    df = three_row_ldpsa.rename(columns={"sand": "Sand", "disp": " Disp "})
    df[" Disp "] = df[" Disp "].str.upper()
    df.to_csv(tmp_path / "ldpsa.csv", index=False)
    (tmp_path / "covariates.csv").write_text("SSID,pH\nA,6.1\nB,5.9\n")

    config = WorkflowConfig.from_dirs(tmp_path, tmp_path / "out")
    meas = read_measurements(config)
    cov = read_covariates(config)

    assert "sand" in meas.columns and "disp" in meas.columns
    assert set(meas["disp"]) == {"water", "calgon"}
    assert list(cov.columns) == ["ssid", "ph"]
    assert list(cov["ssid"]) == ["A", "B"]


def test_read_measurements_missing_column(tmp_path, three_row_ldpsa):
    path = tmp_path / "m.csv"
    three_row_ldpsa.drop(columns=["trt"]).to_csv(path, index=False)
    from pandera.errors import SchemaErrors
    with pytest.raises(SchemaErrors, match="trt"):
        read_measurements(path)


@pytest.mark.parametrize("col", ["site", "ssid", "trt"])
def test_read_measurements_rejects_blank_cells(tmp_path, three_row_ldpsa, col):
    from pandera.errors import SchemaErrors
    df = three_row_ldpsa.astype({col: object})
    df.loc[1, col] = None
    path = tmp_path / "m.csv"
    df.to_csv(path, index=False)
    with pytest.raises(SchemaErrors, match=col):
        read_measurements(path)
