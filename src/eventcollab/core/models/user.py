"""User Domain Model -- 仅用于用户存在性校验与参与者引用"""

from pydantic import BaseModel, Field


class User(BaseModel):
    """用户"""

    user_id: str = Field(description="唯一标识")
    name: str = Field(default="", description="显示名称")
    email: str = Field(default="", description="邮箱")
