# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Profile endpoint – name, password and profile-image changes.

The request is multipart so that the image can travel with the text fields.
Changing the password requires the current password, so a copied session
alone cannot take over the account.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from auth.schemas import SafeUser
from auth.service import AccountService, get_account_service
from users.schemas import ProfileUpdateResponse

router = APIRouter(prefix="/api/user", tags=["user"])


# ---------------------------------------------------------------------------
# PUT /api/user/update
# ---------------------------------------------------------------------------


@router.put("/update", response_model=ProfileUpdateResponse)
def update_profile(
    userId: Optional[str] = Form(None),
    name: Optional[str] = Form(None),
    currentPassword: Optional[str] = Form(None),
    newPassword: Optional[str] = Form(None),
    profileImage: Optional[UploadFile] = File(None),
    accounts: AccountService = Depends(get_account_service),
):
    user = accounts.update_profile(
        userId,
        name=name,
        current_password=currentPassword,
        new_password=newPassword,
        new_image=profileImage,
    )
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=SafeUser.model_validate(user),
    )
