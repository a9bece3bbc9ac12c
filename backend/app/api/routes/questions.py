from fastapi import APIRouter

from app.schemas.wizard import QuestionBankResponse

router = APIRouter()


@router.get("", response_model=QuestionBankResponse)
async def list_questions():
    """The fixed question bank, grouped by category in wizard order."""
    return QuestionBankResponse.build()
