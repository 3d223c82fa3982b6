from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.ai.providers import AIProvider, ImageInput
from taskboard.assistant.bridge import AssistantBridge
from taskboard.assistant.gateway import StoreGateway
from taskboard.deps import assistant_rate_limit, get_db, get_provider
from taskboard.logging_config import get_logger
from taskboard.metrics import runtime_metrics
from taskboard.schemas import AssistantChatIn, AssistantChatOut

logger = get_logger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


@router.post("/chat", response_model=AssistantChatOut, dependencies=[Depends(assistant_rate_limit)])
async def chat(
  payload: AssistantChatIn,
  db: AsyncSession = Depends(get_db),
  provider: AIProvider = Depends(get_provider),
) -> AssistantChatOut:
  image = ImageInput(media_type=payload.image.mediaType, data=payload.image.data) if payload.image else None
  bridge = AssistantBridge(provider, StoreGateway(db))
  result = await bridge.handle(payload.message, image=image)
  await db.commit()
  runtime_metrics.count(f"assistant.{result.intent}")
  logger.info("Assistant %s via %s affected %d tasks", result.intent, provider.name, len(result.tasks))
  return AssistantChatOut(intent=result.intent, reply=result.reply, tasks=result.tasks)
