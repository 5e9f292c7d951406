import io
import json

from ..normalization import CONSUMPTION_YEARS


def flatten_for_export(df):
    """Expand annual_consumption into one column per year."""
    out = df.drop(columns=["annual_consumption"], errors="ignore").copy()
    if "annual_consumption" not in df.columns:
        return out
    years = [tuple(v)[:CONSUMPTION_YEARS] for v in df["annual_consumption"]]
    for i in range(CONSUMPTION_YEARS):
        out[f"consumption_year_{i + 1}"] = [y[i] if i < len(y) else 0.0 for y in years]
    return out


def export_csv(df):
    buffer = io.StringIO()
    flatten_for_export(df).to_csv(buffer, index=False)
    return buffer.getvalue().encode("utf-8")


def export_json(df):
    records = flatten_for_export(df).to_dict(orient="records")
    return json.dumps(records, indent=2, default=str, ensure_ascii=False).encode("utf-8")
