from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from openai import OpenAI
from pydantic import BaseModel, ConfigDict, Field

from my_todo.llm import get_openai_client
from my_todo.praise import generate_praise

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="my-todo-praise", version="1.0")


class PraiseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_text: str = Field(alias="taskText")
    level_title: str = Field(alias="levelTitle")


class PraiseResponse(BaseModel):
    message: str


def get_praise_client() -> Optional[OpenAI]:
    return get_openai_client()


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@app.post("/api/praise", response_model=PraiseResponse)
def praise(req: PraiseRequest, client: Optional[OpenAI] = Depends(get_praise_client)) -> Any:
    result = generate_praise(req.task_text, req.level_title, client=client)
    if not result.ok:
        return JSONResponse(status_code=500, content={"message": result.message})
    return PraiseResponse(message=result.message)


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    host = os.getenv("PRAISE_API_HOST", "127.0.0.1")
    port = int(os.getenv("PRAISE_API_PORT", "8000"))
    LOGGER.info("Starting praise API on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
