"""Tests for tenant-aware resolution, message assembly and delivery."""

import ssl

import aiosmtplib
import pytest

from mail_notifier import (
    DefaultEmailSender,
    DispatchOutcome,
    EmailMessageRequest,
    EmailProperties,
    InMemoryTenantsManager,
    InvalidAddressError,
    MailSettings,
    NoOpEmailSender,
    SslBundle,
    SslBundleNotFoundError,
    SslBundles,
    SslSettings,
    StaticMessageSource,
    TenantCommunicationPolicy,
    TenantDefinition,
    TenantEmailCommunicationPolicy,
    TransportError,
)


def make_tenant(tenant_id="acme", **policy) -> TenantDefinition:
    return TenantDefinition(
        id=tenant_id,
        communication_policy=TenantCommunicationPolicy(
            email_communication_policy=TenantEmailCommunicationPolicy(**policy)
        ),
    )


def make_sender(settings=None, tenants=None, **kwargs) -> DefaultEmailSender:
    return DefaultEmailSender(
        mail_settings=settings or MailSettings(host="smtp.global.test", port=25, username="global", password="gpass"),
        tenants=InMemoryTenantsManager(tenants or []),
        **kwargs,
    )


def make_request(tenant=None, **props) -> EmailMessageRequest:
    props.setdefault("from_address", "default@example.com")
    props.setdefault("subject", "Hello")
    return EmailMessageRequest(
        recipients=["user@example.com", "other@example.com"],
        body="Body text",
        tenant=tenant,
        email_properties=EmailProperties(**props),
    )


class RecordingCustomizer:
    def __init__(self, name, calls):
        self.name = name
        self.calls = calls

    def customize(self, transport, request):
        self.calls.append((self.name, transport.host, request.body))


@pytest.mark.asyncio
async def test_tenant_from_overrides_default(smtp):
    sender = make_sender(tenants=[make_tenant(host="smtp.acme.test", port=587, from_address="noreply@acme.test")])

    result = await sender.send(make_request(tenant="acme"))

    assert result.success is True
    assert result.outcome is DispatchOutcome.SENT
    message = smtp.sent[0]
    assert message["From"] == "noreply@acme.test"
    assert smtp.created[0].hostname == "smtp.acme.test"
    assert smtp.created[0].port == 587


@pytest.mark.asyncio
async def test_blank_tenant_from_falls_back_to_default(smtp):
    sender = make_sender(tenants=[make_tenant(host="smtp.acme.test", from_address="   ")])

    await sender.send(make_request(tenant="acme"))

    assert smtp.sent[0]["From"] == "default@example.com"


@pytest.mark.asyncio
async def test_unknown_tenant_uses_global_settings(smtp):
    sender = make_sender(tenants=[make_tenant(host="smtp.acme.test", from_address="noreply@acme.test")])

    result = await sender.send(make_request(tenant="globex"))

    assert result.success is True
    client = smtp.created[0]
    assert client.hostname == "smtp.global.test"
    assert client.kwargs["username"] == "global"
    assert smtp.sent[0]["From"] == "default@example.com"


@pytest.mark.asyncio
async def test_blank_host_returns_failure_without_customizers(smtp):
    calls = []
    sender = make_sender(settings=MailSettings(host=""), customizers=[RecordingCustomizer("a", calls)])
    request = make_request()

    result = await sender.send(request)

    assert result.success is False
    assert result.outcome is DispatchOutcome.UNREACHABLE
    assert smtp.created == []
    assert calls == []
    assert result.to == request.recipients
    assert result.body == request.body


@pytest.mark.asyncio
async def test_tenant_policy_replaces_connection_block_as_unit(smtp):
    # tenant policy without host does not inherit the global host
    sender = make_sender(tenants=[make_tenant(from_address="noreply@acme.test")])

    result = await sender.send(make_request(tenant="acme"))

    assert result.success is False
    assert smtp.created == []


@pytest.mark.asyncio
async def test_probe_failure_is_swallowed(smtp):
    calls = []
    smtp.connect_error = ConnectionRefusedError("refused")
    sender = make_sender(customizers=[RecordingCustomizer("a", calls)])
    request = make_request()

    result = await sender.send(request)

    assert result.success is False
    assert result.outcome is DispatchOutcome.UNREACHABLE
    assert result.to == request.recipients
    assert result.body == "Body text"
    assert calls == []
    assert smtp.sent == []


@pytest.mark.asyncio
async def test_customizers_run_in_order_once(smtp):
    calls = []
    sender = make_sender(customizers=[RecordingCustomizer("first", calls)])
    sender.add_customizer(lambda transport, request: calls.append(("second", transport.host, request.body)))

    await sender.send(make_request())

    assert calls == [
        ("first", "smtp.global.test", "Body text"),
        ("second", "smtp.global.test", "Body text"),
    ]


@pytest.mark.asyncio
async def test_message_headers(smtp):
    sender = make_sender()

    await sender.send(make_request(reply_to="support@example.com", priority=3, cc=["cc@example.com"], html=True))

    message = smtp.sent[0]
    assert message["To"] == "user@example.com, other@example.com"
    assert message["Reply-To"] == "support@example.com"
    assert message["X-Priority"] == "3"
    assert message["Cc"] == "cc@example.com"
    assert message["Subject"] == "Hello"
    assert message.get_content_type() == "text/html"
    assert message.get_content().strip() == "Body text"


@pytest.mark.asyncio
async def test_blank_reply_to_and_empty_lists_leave_headers_unset(smtp):
    sender = make_sender()

    await sender.send(make_request(reply_to="  "))

    message = smtp.sent[0]
    assert "Reply-To" not in message
    assert "Cc" not in message
    assert "Bcc" not in message
    assert message.get_content_type() == "text/plain"


@pytest.mark.asyncio
async def test_subject_resolved_through_message_source(smtp):
    source = StaticMessageSource({"en": {"reset.subject": "Reset"}, "it": {"reset.subject": "Reimposta"}})
    sender = make_sender(message_source=source)
    request = make_request(subject="reset.subject").model_copy(update={"locale": "it_IT"})

    await sender.send(request)

    assert smtp.sent[0]["Subject"] == "Reimposta"


def test_protocol_and_encoding_come_from_global_settings():
    settings = MailSettings(host="smtp.global.test", protocol="smtps", default_encoding="iso-8859-1")
    sender = make_sender(settings=settings, tenants=[make_tenant(host="smtp.acme.test", port=0)])
    policy = sender.tenants.find_tenant("acme").email_communication_policy

    transport = sender.create_transport(make_request(tenant="acme"), policy)

    assert transport.host == "smtp.acme.test"
    assert transport.port is None
    assert transport.protocol == "smtps"
    assert transport.default_encoding == "iso-8859-1"
    assert transport.use_tls is True


@pytest.mark.asyncio
async def test_ssl_enabled_and_bundle(smtp):
    settings = MailSettings(host="smtp.global.test", ssl=SslSettings(enabled=True, bundle="corp"))
    sender = make_sender(settings=settings, ssl_bundles=SslBundles([SslBundle(name="corp")]))

    await sender.send(make_request())

    client = smtp.created[0]
    assert client.kwargs["use_tls"] is True
    assert isinstance(client.kwargs["tls_context"], ssl.SSLContext)


def test_unknown_ssl_bundle_raises():
    settings = MailSettings(host="smtp.global.test", ssl=SslSettings(bundle="missing"))
    sender = make_sender(settings=settings, ssl_bundles=SslBundles())

    with pytest.raises(SslBundleNotFoundError):
        sender.create_transport(make_request())


@pytest.mark.asyncio
async def test_smtp_rejection_propagates(smtp):
    smtp.send_error = aiosmtplib.SMTPDataError(550, "rejected")
    sender = make_sender()

    with pytest.raises(aiosmtplib.SMTPDataError):
        await sender.send(make_request())


@pytest.mark.asyncio
async def test_unexpected_send_error_is_wrapped(smtp):
    smtp.send_error = OSError("connection reset")
    sender = make_sender()

    with pytest.raises(TransportError) as excinfo:
        await sender.send(make_request())
    assert excinfo.value.host == "smtp.global.test"
    assert isinstance(excinfo.value.__cause__, OSError)
    assert smtp.created[-1].closed is False


@pytest.mark.asyncio
async def test_invalid_address_propagates_when_validation_enabled(smtp):
    sender = make_sender()

    with pytest.raises(InvalidAddressError):
        await sender.send(make_request(validate_addresses=True, cc=["not-an-address"]))
    assert smtp.sent == []


@pytest.mark.asyncio
async def test_noop_sender_never_sends(smtp):
    sender = NoOpEmailSender()
    request = make_request()

    result = await sender.send(request)

    assert sender.can_send() is False
    assert result.success is False
    assert result.to == request.recipients
    assert smtp.created == []


@pytest.mark.asyncio
async def test_global_from_used_when_request_has_none(smtp):
    settings = MailSettings(host="smtp.global.test", default_from="noreply@global.test")
    sender = make_sender(settings=settings, tenants=[make_tenant(host="smtp.acme.test", from_address="")])

    await sender.send(make_request(from_address=None))
    await sender.send(make_request(tenant="acme", from_address="  "))

    assert [message["From"] for message in smtp.sent] == ["noreply@global.test", "noreply@global.test"]


@pytest.mark.asyncio
async def test_failed_noop_after_connect_is_unreachable(smtp):
    calls = []
    smtp.noop_error = aiosmtplib.SMTPResponseException(421, "service not available")
    sender = make_sender(customizers=[RecordingCustomizer("a", calls)])

    result = await sender.send(make_request())

    assert result.success is False
    assert result.outcome is DispatchOutcome.UNREACHABLE
    assert smtp.created[0].closed is True
    assert calls == []
    assert smtp.sent == []
