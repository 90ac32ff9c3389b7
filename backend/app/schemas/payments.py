"""Pydantic schemas for checkout, webhook and premium endpoints"""
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from typing import Any, Dict, Optional


class ContactCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(alias="requestId")
    teacher_id: str = Field(alias="teacherId")


class TeacherPremiumCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    teacher_email: EmailStr = Field(alias="teacherEmail")
    teacher_name: Optional[str] = Field(default=None, alias="teacherName")


class StudentPremiumData(BaseModel):
    email: EmailStr
    subject: Optional[str] = None
    mobile: Optional[str] = None
    topix: Optional[str] = None
    # the browser client sends the misspelled key
    description: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("descripton", "description")
    )


class StudentPremiumCheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_data: StudentPremiumData = Field(alias="studentData")


class CheckoutSessionResponse(BaseModel):
    id: str
    url: Optional[str] = None


class PremiumContentData(BaseModel):
    link_or_video: Optional[bool] = None
    link1: Optional[str] = None
    link2: Optional[str] = None
    link3: Optional[str] = None
    video1: Optional[str] = None
    video2: Optional[str] = None
    video3: Optional[str] = None


class UpdatePremiumContentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    teacher_email: EmailStr = Field(alias="teacherEmail")
    content_data: PremiumContentData = Field(default_factory=PremiumContentData, alias="contentData")


class PremiumStatusResponse(BaseModel):
    hasPremium: bool
    isPaid: bool
    premiumData: Optional[Dict[str, Any]] = None
