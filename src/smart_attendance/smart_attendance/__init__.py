"""Smart Attendance package.

RFID + face dual-authentication attendance. Organized by feature modules
(attendance, face, notifications, settings, ...) with a thin Flask controller
layer over service/repository layers; face verification runs on an asyncio
loop hosted by ``runtime.VerificationRuntime``.
"""
