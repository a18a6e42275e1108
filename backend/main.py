"""
Metria Backend - Dataset Ingestion & Profiling API
CSV / spreadsheet import, statistical profiling, and AI insight context
"""

import json
import os
from pathlib import PurePath
from time import perf_counter
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from openai import OpenAI
from pydantic import ValidationError

from models import (
    RowImportRequest, DatasetSelection, AnalyzeRequest, DatasetSummary,
    AnalyzeResponse, IntelligenceResponse, summarize,
)
from storage import (
    get_dataset, get_datasets, list_datasets, store_dataset, remove_dataset,
    attach_insight, next_position,
)
from engine import (
    AIInsight,
    Dataset,
    InsightBundle,
    parse_csv_text,
    parse_row_array,
    build_dataset,
    color_for,
    prepare_ai_context,
    build_insight_request,
    build_intelligence_payload,
)

load_dotenv()

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]
DEFAULT_IMPORT_NAME = "Imported Sheet"

app = FastAPI(
    title="Metria API",
    description="Dataset ingestion, statistical profiling and AI insight context",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Client initialized lazily so the app imports without an API key
_client: Optional[OpenAI] = None


def get_openai_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
    return _client


# ============================================================================
# Helper Functions
# ============================================================================

def print_pipeline_timing(endpoint: str, durations: dict[str, float]) -> None:
    """Print formatted execution timings for ingestion pipeline phases."""
    print(f"\n=== {endpoint} Pipeline Timing ===")
    print(f"Parsing: {durations['parsing']:.2f}s")
    print(f"Profiling: {durations['profiling']:.2f}s")
    print(f"Total Pipeline: {durations['total']:.2f}s")
    print("=" * (len(endpoint) + 20))


def generate_insight(request: dict) -> AIInsight:
    """Send the prepared context to the LLM and parse its JSON reply."""
    user_prompt = f"""Mode: {request['mode']}

Context:
{json.dumps(request['context'], ensure_ascii=False, separators=(",", ":"))}"""

    response = get_openai_client().chat.completions.create(
        model=OPENAI_MODEL,
        messages=[
            {"role": "system", "content": request["system_instructions"]},
            {"role": "user", "content": user_prompt},
        ],
        temperature=0.3,
        response_format={"type": "json_object"},
    )
    content = response.choices[0].message.content
    return AIInsight.model_validate(json.loads(content))


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/")
async def root():
    return {"status": "ok", "version": "1.0.0"}


@app.post("/upload", response_model=Dataset)
async def upload_csv(file: UploadFile = File(...)):
    if not file.filename or not file.filename.lower().endswith('.csv'):
        raise HTTPException(status_code=400, detail="Please upload a CSV file.")

    try:
        t0 = perf_counter()
        content = await file.read()
        table = parse_csv_text(content)
        t1 = perf_counter()
        if not table.header:
            raise HTTPException(status_code=400, detail="CSV is empty.")

        dataset = build_dataset(
            table,
            name=PurePath(file.filename).stem,
            color=color_for(next_position()),
        )
        t2 = perf_counter()
        store_dataset(dataset)

        print_pipeline_timing("/upload", {
            "parsing": t1 - t0,
            "profiling": t2 - t1,
            "total": perf_counter() - t0,
        })
        return dataset
    except HTTPException:
        raise
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded.")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/import", response_model=Dataset)
async def import_rows(request: RowImportRequest):
    """Ingest rows already fetched from a spreadsheet provider."""
    try:
        t0 = perf_counter()
        table = parse_row_array(request.values)
        t1 = perf_counter()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not table.header:
        raise HTTPException(status_code=400, detail="No rows returned for this sheet.")

    dataset = build_dataset(
        table,
        name=request.name or request.title or DEFAULT_IMPORT_NAME,
        color=color_for(next_position()),
    )
    t2 = perf_counter()
    store_dataset(dataset)

    print_pipeline_timing("/import", {
        "parsing": t1 - t0,
        "profiling": t2 - t1,
        "total": perf_counter() - t0,
    })
    return dataset


@app.get("/datasets", response_model=list[DatasetSummary])
async def datasets_index():
    return [summarize(ds) for ds in list_datasets()]


@app.get("/datasets/{dataset_id}", response_model=Dataset)
async def dataset_detail(dataset_id: str):
    return get_dataset(dataset_id)


@app.delete("/datasets/{dataset_id}")
async def delete_dataset(dataset_id: str):
    remove_dataset(dataset_id)
    return {"deleted": dataset_id}


@app.post("/ai/context", response_model=InsightBundle)
async def ai_context(request: DatasetSelection):
    return prepare_ai_context(get_datasets(request.dataset_ids))


@app.post("/ai/analyze", response_model=AnalyzeResponse)
async def ai_analyze(request: AnalyzeRequest):
    if not os.getenv("OPENAI_API_KEY"):
        raise HTTPException(status_code=500, detail="OpenAI API key not configured.")

    datasets = get_datasets(request.dataset_ids)
    insight_request = build_insight_request(datasets, mode=request.mode)

    try:
        insight = generate_insight(insight_request)
    except (json.JSONDecodeError, ValidationError) as e:
        print(f"Insight parsing failed: {e}")
        raise HTTPException(status_code=500, detail="Analysis failed: the model returned malformed JSON.")
    except Exception as e:
        print(f"Insight generation failed: {e}")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")

    updated = attach_insight(datasets[0].id, insight)
    return AnalyzeResponse(
        dataset_id=updated.id,
        insight=insight,
        context=InsightBundle.model_validate(insight_request["context"]["bundle"]),
    )


@app.post("/intelligence", response_model=IntelligenceResponse)
async def intelligence(request: DatasetSelection):
    return build_intelligence_payload(get_datasets(request.dataset_ids))
