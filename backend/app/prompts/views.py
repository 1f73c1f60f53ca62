# app/prompts/views.py
import random

from rest_framework.views import APIView

from app.common.exceptions import NotFound
from app.common.responses import ok
from app.prompts.catalog import get_prompt_by_id, get_prompts_by_category, get_random_prompt


class RandomPromptView(APIView):
    """
    GET /api/prompts/random?category=
    시나리오 하나 + 배정 포지션 하나를 뽑아줌
    """

    def get(self, request):
        category = (request.query_params.get("category") or "").strip()
        if category:
            candidates = get_prompts_by_category(category)
            if not candidates:
                raise NotFound(f"no prompts in category '{category}'")
            prompt = random.choice(candidates)
        else:
            prompt = get_random_prompt()

        position = random.choice(prompt.positions) if prompt.positions else None
        return ok({"prompt": prompt.to_dict(), "position": position})


class PromptDetailView(APIView):
    def get(self, request, prompt_id: str):
        prompt = get_prompt_by_id(prompt_id)
        if not prompt:
            raise NotFound("Prompt not found")
        return ok({"prompt": prompt.to_dict()})
