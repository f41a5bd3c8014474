"""
Roommate search: a filtered, capped, newest-first query over other users.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from beanie import PydanticObjectId
from pymongo.errors import PyMongoError

from roommate_finder.exceptions import InternalError
from roommate_finder.models.user import Availability, User
from roommate_finder.services.profile_service import serialize_profile, to_number

logger = logging.getLogger(__name__)

MAX_RESULTS = 25
ANY_GENDER = "any"


def build_roommate_filter(
    caller_id: PydanticObjectId,
    city: Optional[str] = None,
    gender: Optional[str] = None,
    budget_max: Any = None,
) -> Dict[str, Any]:
    """
    Raw MongoDB filter for candidates. The caller and anyone not looking are
    always excluded; each optional filter narrows only when usable.
    """
    query: Dict[str, Any] = {
        "_id": {"$ne": caller_id},
        "availability": {"$ne": Availability.NOT_LOOKING.value},
    }

    city = city.strip() if isinstance(city, str) else ""
    if city:
        query["city"] = {"$regex": re.escape(city), "$options": "i"}

    if gender and gender != ANY_GENDER:
        query["gender"] = gender

    if budget_max is not None and budget_max != "":
        max_value = to_number(budget_max)
        if max_value is not None:
            query["budget"] = {"$lte": max_value}

    return query


async def find_roommates(
    caller: User,
    city: Optional[str] = None,
    gender: Optional[str] = None,
    budget_max: Any = None,
) -> List[Dict[str, Any]]:
    query = build_roommate_filter(caller.id, city=city, gender=gender, budget_max=budget_max)
    try:
        roommates = await User.find(query).sort(-User.updated_at).limit(MAX_RESULTS).to_list()
    except PyMongoError as e:
        logger.exception("Roommate search failed for user %s", caller.id)
        raise InternalError() from e

    logger.debug("Roommate search by %s (filters=%s): %d results", caller.id, sorted(query), len(roommates))
    return [serialize_profile(roommate) for roommate in roommates]
