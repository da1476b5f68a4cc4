"""
Email campaign models

A campaign is a small workflow graph walked once per candidate execution
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from enum import Enum
from sqlmodel import Field, Column, JSON
from pydantic import model_validator

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class ExecutionStatus(str, Enum):
    RUNNING = "running"
    WAITING = "waiting"
    COMPLETED = "completed"
    FAILED = "failed"


class NodeType(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"
    CONDITION = "condition"
    DELAY = "delay"
    END = "end"


# ==================== Workflow definition ====================

class WorkflowNode(SQLModelBase):
    id: str = Field(..., min_length=1)
    type: NodeType
    config: Dict[str, Any] = Field(default_factory=dict)
    connections: List[str] = Field(default_factory=list, description="Next node ids")


class Workflow(SQLModelBase):
    start_node_id: str
    nodes: List[WorkflowNode] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_graph(self):
        ids = {node.id for node in self.nodes}
        if len(ids) != len(self.nodes):
            raise ValueError("workflow node ids must be unique")
        if self.start_node_id not in ids:
            raise ValueError(f"start node '{self.start_node_id}' not found")
        for node in self.nodes:
            targets = list(node.connections)
            if node.type == NodeType.CONDITION:
                targets += [
                    t for t in (node.config.get("true_node_id"), node.config.get("false_node_id")) if t
                ]
            for target in targets:
                if target not in ids:
                    raise ValueError(f"node '{node.id}' points to unknown node '{target}'")
        return self


# ==================== Table models ====================

class EmailCampaign(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "email_campaigns"

    employer_id: str = Field(foreign_key="employers.id", index=True)
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    status: str = Field(CampaignStatus.DRAFT.value, index=True)
    workflow: dict = Field(default_factory=dict, sa_column=Column(JSON))


class CampaignExecution(TimestampMixin, IDMixin, SQLModelBase, table=True):
    __tablename__ = "campaign_executions"

    campaign_id: str = Field(foreign_key="email_campaigns.id", index=True)
    candidate_id: str = Field(foreign_key="candidates.id", index=True)
    current_step: Optional[str] = None
    status: str = Field(ExecutionStatus.RUNNING.value, index=True)
    steps_executed: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    execution_data: dict = Field(default_factory=dict, sa_column=Column(JSON))
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    resume_at: Optional[datetime] = None


# ==================== Request schemas ====================

class CampaignCreate(SQLModelBase):
    employer_id: str
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    workflow: Workflow


class CampaignUpdate(SQLModelBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    workflow: Optional[Workflow] = None


class CampaignExecuteRequest(SQLModelBase):
    candidate_id: str
    data: dict = Field(default_factory=dict, description="Extra merge fields")


# ==================== Response schemas ====================

class CampaignResponse(TimestampResponse):
    employer_id: str
    name: str
    description: Optional[str]
    status: str
    workflow: dict


class CampaignExecutionResponse(TimestampResponse):
    campaign_id: str
    candidate_id: str
    current_step: Optional[str]
    status: str
    steps_executed: List[str]
    execution_data: dict
    error_message: Optional[str]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    resume_at: Optional[datetime]
