"""管理员接口的请求/响应模型。"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.packages.drive.api.v1.schemas.common import ResponseEnvelope


class TimerUpdateBody(BaseModel):
    deadline: datetime
    isActive: bool = True


class UserUpdateBody(BaseModel):
    isActive: Optional[bool] = None
    isAdmin: Optional[bool] = None


TimerResponse = ResponseEnvelope[dict]
StatsResponse = ResponseEnvelope[dict]
UserListResponse = ResponseEnvelope[list[dict]]
UserMutationResponse = ResponseEnvelope[dict]
