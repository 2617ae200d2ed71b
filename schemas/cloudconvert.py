from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class ResultFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    filename: Optional[str] = None
    size: Optional[int] = None


class TaskResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    form: Optional[UploadForm] = None
    files: List[ResultFile] = Field(default_factory=list)


class RemoteTask(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: str
    operation: Optional[str] = None
    status: str = "waiting"
    message: Optional[str] = None
    code: Optional[str] = None
    result: Optional[TaskResult] = None


class RemoteJob(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    status: str = "waiting"
    message: Optional[str] = None
    tag: Optional[str] = None
    tasks: List[RemoteTask] = Field(default_factory=list)

    def task(self, name: str) -> Optional[RemoteTask]:
        for task in self.tasks:
            if task.name == name:
                return task
        return None

    def first_failed_task(self) -> Optional[RemoteTask]:
        for task in self.tasks:
            if str(task.status or "").lower() == "error":
                return task
        return None
