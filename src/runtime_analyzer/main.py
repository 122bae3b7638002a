"""FastAPI application for the runtime analyzer."""

import asyncio
import logging
import uuid

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .analyzer import RuntimeAnalyzer
from .config import AnalyzerConfig
from .errors import InputValidationError, NotFoundError
from .formatter import format_report
from .models import AnalyzeRequest, AnalyzeResponse

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Runtime Analyzer",
    description="Heuristic scan of source text for patterns that fail at runtime",
    version=__version__,
)

# CORS - allow common development origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8000",
    ],
    allow_methods=["POST", "GET"],
    allow_headers=["*"],
)

analyzer = RuntimeAnalyzer(AnalyzerConfig.from_env())


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest) -> AnalyzeResponse:
    """
    Analyze source text for runtime risks.

    - **source**: program text to analyze
    - **label**: optional file name used in finding locations
    - **output_format**: summary, structured, or serialized
    """
    try:
        logger.info(f"Analyzing {request.label or 'inline source'} ({len(request.source)} chars)")

        result = await asyncio.to_thread(analyzer.analyze_source, request.source, request.label)
        report = format_report(result, request.output_format)

        return AnalyzeResponse(
            scan_id=str(uuid.uuid4()),
            result=result,
            report=report,
        )

    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")
