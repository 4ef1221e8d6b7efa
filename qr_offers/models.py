from typing import List, Optional, Union
from pydantic import BaseModel


class GenerateQrRequest(BaseModel):
    phoneNumbers: Optional[List[str]] = None


class QrImage(BaseModel):
    phone: str
    qrCode: str  # data:image/png;base64,...
    scanUrl: str


class GenerateQrResponse(BaseModel):
    message: str
    images: List[QrImage]


class CheckScanRequest(BaseModel):
    code: Optional[Union[str, int]] = None


class CheckScanResponse(BaseModel):
    message: str
    scanCount: int


class ScanCountResponse(BaseModel):
    code: str
    scanCount: int
    redeemed: bool
