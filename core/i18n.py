"""Interface strings for the two supported languages."""
from __future__ import annotations

from typing import Dict

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "zh": {
        "app.title": "编程学习助手",
        "chat.greeting": "你好！我是你的编程学习助手，有什么可以帮你的吗？",
        "chat.new": "新对话",
        "chat.placeholder": "输入消息，按 Enter 发送，Shift+Enter 换行",
        "chat.send": "发送",
        "chat.thinking": "AI 正在思考中...",
        "chat.error": "发送消息失败，请重试",
        "chat.rename": "重命名",
        "chat.delete": "删除",
        "chat.delete_confirm": "确定删除这个对话吗？",
        "chat.not_found": "会话不存在",
        "nav.settings": "设置",
        "nav.back": "返回聊天",
        "settings.title": "设置",
        "settings.api_key": "OpenAI API Key",
        "settings.api_key_desc": "留空则使用系统配置或环境变量中的 Key",
        "settings.api_key_set": "已设置 API Key",
        "settings.api_key_unset": "未设置 API Key",
        "settings.language": "语言",
        "settings.language_desc": "选择界面和回答语言",
        "settings.streaming": "流式输出",
        "settings.streaming_desc": "逐字显示 AI 的回复",
        "settings.save": "保存",
        "settings.saved": "已保存",
    },
    "en": {
        "app.title": "Coding Tutor",
        "chat.greeting": "Hi! I'm your programming tutor. What would you like to learn today?",
        "chat.new": "New Conversation",
        "chat.placeholder": "Type a message, Enter to send, Shift+Enter for a new line",
        "chat.send": "Send",
        "chat.thinking": "AI is thinking...",
        "chat.error": "Failed to send the message, please retry",
        "chat.rename": "Rename",
        "chat.delete": "Delete",
        "chat.delete_confirm": "Delete this conversation?",
        "chat.not_found": "Conversation not found",
        "nav.settings": "Settings",
        "nav.back": "Back to chat",
        "settings.title": "Settings",
        "settings.api_key": "OpenAI API Key",
        "settings.api_key_desc": "Leave empty to use the system or environment key",
        "settings.api_key_set": "API key is set",
        "settings.api_key_unset": "No API key set",
        "settings.language": "Language",
        "settings.language_desc": "Select interface and answer language",
        "settings.streaming": "Streaming output",
        "settings.streaming_desc": "Show the AI reply as it is generated",
        "settings.save": "Save",
        "settings.saved": "Saved",
    },
}


def translate(language: str, key: str) -> str:
    """Look a key up for ``language``, falling back to Chinese, then to the key itself."""

    table = TRANSLATIONS.get(language) or TRANSLATIONS["zh"]
    return table.get(key) or TRANSLATIONS["zh"].get(key, key)
