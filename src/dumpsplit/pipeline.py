"""Download, split and index pipeline."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import requests
from openai import OpenAI

from dumpsplit.config import AppConfig
from dumpsplit.index.categorizer import NoCategoriesError, split_sql_by_category
from dumpsplit.ingestion.decoder import decode_text_buffer, detect_encoding
from dumpsplit.remote.download import download_file, resolve_file_name, resolve_file_url
from dumpsplit.remote.vector_store import BatchFailedError, VectorStoreUploader, vector_store_name
from dumpsplit.utils.files import safe_remove_path, sanitize_file_name, write_category_files

LOGGER = logging.getLogger(__name__)

PREVIEW_CHARS = 200


class PipelineInputError(ValueError):
    """Raised when the request body is missing required fields."""


def _isoformat(moment: datetime) -> str:
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"


def _first_payload_item(source: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    payload = source.get("payload")
    if not isinstance(payload, Sequence) or isinstance(payload, str) or not payload:
        return None
    item = payload[0]
    return item if isinstance(item, Mapping) else None


def _empty_output(source: Mapping[str, Any], started_at: datetime) -> Dict[str, Any]:
    payload_item = _first_payload_item(source) or {}
    return {
        "result": {
            "simulatorFileId": payload_item.get("id"),
            "localFilePath": None,
            "openaiFileId": None,
            "openaiFileIds": None,
            "categoryFilePaths": None,
            "vectorStoreId": None,
            "batchId": None,
            "status": "failed",
            "error": None,
        },
        "meta": {
            "startedAt": _isoformat(started_at),
            "finishedAt": None,
            "durationMs": None,
        },
    }


def _unwrap(request: Any) -> Mapping[str, Any]:
    if not isinstance(request, Mapping):
        return {}
    data = request.get("data")
    return data if isinstance(data, Mapping) else request


class Pipeline:
    """Runs one dump through download, categorisation and vector indexing."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        session: requests.Session | None = None,
        uploader_factory: Optional[Callable[[str], VectorStoreUploader]] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.config = config or AppConfig()
        self.session = session
        self.uploader_factory = uploader_factory or self._default_uploader
        self.now = now

    def _default_uploader(self, api_key: str) -> VectorStoreUploader:
        return VectorStoreUploader(
            OpenAI(api_key=api_key),
            poll_timeout=self.config.poll_timeout_seconds,
            initial_backoff=self.config.poll_initial_backoff_seconds,
            max_backoff=self.config.poll_max_backoff_seconds,
        )

    def run(self, request: Mapping[str, Any] | None) -> Dict[str, Any]:
        """Execute the pipeline; failures are reported in the output, not raised."""
        started_at = self.now()
        source = _unwrap(request)
        output = _empty_output(source, started_at)
        result = output["result"]
        state = {"step": "init"}

        try:
            self._run_steps(source, result, state)
        except Exception as exc:
            LOGGER.error("Pipeline failed at step %s: %s", state["step"], exc)
            result["status"] = "failed"
            result["error"] = {"message": str(exc) or "Unknown error", "step": state["step"]}
        finally:
            finished_at = self.now()
            output["meta"]["finishedAt"] = _isoformat(finished_at)
            output["meta"]["durationMs"] = int((finished_at - started_at).total_seconds() * 1000)

        return output

    def _run_steps(self, source: Mapping[str, Any], result: Dict[str, Any], state: Dict[str, str]) -> None:
        payload_item = _first_payload_item(source)
        options = source.get("options")
        if not isinstance(options, Mapping):
            options = {}

        if payload_item is None:
            raise PipelineInputError("Missing payload[0]")
        api_key = source.get("gptToken")
        if not api_key:
            raise PipelineInputError("Missing gptToken")

        state["step"] = "download"
        file_url = resolve_file_url(payload_item, source)
        if not file_url:
            raise PipelineInputError("Missing fileUrl or simulatorBaseUrl + payload[0].fileName")

        original_file_name = resolve_file_name(payload_item, file_url)
        output_dir = Path(options.get("outputDir") or self.config.resolve_output_dir(Path.cwd()))
        output_dir.mkdir(parents=True, exist_ok=True)
        local_file_path = output_dir / sanitize_file_name(original_file_name)

        headers: Dict[str, str] = {}
        if source.get("simulatorToken"):
            headers["Authorization"] = f"Bearer {source['simulatorToken']}"

        download_file(
            file_url,
            local_file_path,
            headers=headers,
            session=self.session,
            timeout=self.config.download_timeout_seconds,
        )
        result["localFilePath"] = str(local_file_path)

        state["step"] = "split_sql_by_category"
        LOGGER.info("Parsing SQL and splitting by categories...")
        raw_buffer = local_file_path.read_bytes()
        sql_text = decode_text_buffer(raw_buffer)
        result["parsePreview"] = sql_text[:PREVIEW_CHARS]
        result["parseContainsInsert"] = "insert" in sql_text.lower()
        result["parseEncoding"] = detect_encoding(raw_buffer)
        parsed = split_sql_by_category(sql_text, log=LOGGER.info)
        result["parseStats"] = parsed.stats.as_dict()
        if not parsed.category_map:
            raise NoCategoriesError(parsed.stats)

        category_files = write_category_files(
            parsed.category_map, output_dir, local_file_path.stem
        )
        result["categoryFilePaths"] = [str(path) for path in category_files.file_paths]

        state["step"] = "openai_file_upload"
        LOGGER.info("Uploading category files to OpenAI Files API...")
        uploader = self.uploader_factory(api_key)
        file_ids = uploader.upload_files(category_files.file_paths)
        result["openaiFileIds"] = file_ids
        result["openaiFileId"] = file_ids[0] if file_ids else None

        state["step"] = "vector_store"
        vector_store_id = source.get("existingVectorStoreId")
        if not vector_store_id:
            name = vector_store_name(
                source.get("vectorStoreNamePrefix") or self.config.vector_store_name_prefix,
                original_file_name,
                self.now(),
            )
            LOGGER.info("Creating vector store...")
            vector_store_id = uploader.create_vector_store(name)
        result["vectorStoreId"] = vector_store_id

        LOGGER.info("Creating vector store file batch...")
        batch_id = uploader.create_file_batch(vector_store_id, file_ids)
        result["batchId"] = batch_id

        LOGGER.info("Polling vector store file batch...")
        final_batch = uploader.poll_file_batch(vector_store_id, batch_id)
        result["status"] = final_batch.status
        if final_batch.status != "completed":
            raise BatchFailedError(final_batch.status)

        state["step"] = "cleanup"
        if not options.get("dryRun") and not options.get("keepLocalFile"):
            LOGGER.info("Cleaning up local file...")
            safe_remove_path(local_file_path)
            result["localFilePath"] = None
            safe_remove_path(category_files.categories_dir)


def run_pipeline(request: Mapping[str, Any] | None, config: AppConfig | None = None, **kwargs: Any) -> Dict[str, Any]:
    return Pipeline(config, **kwargs).run(request)
