from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group
from django.urls import reverse
from django.utils import timezone
from django.utils.html import format_html

from .models import (
    User, Post, PostMedia, PollOption, Follow, Block, Notification,
    Conversation, ConversationMember, Message,
)

# ==================== ADMIN CLASSES ====================

@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'email', 'name', 'is_verified', 'is_staff', 'date_joined')
    list_filter = ('is_verified', 'is_staff', 'is_active')
    search_fields = ('username', 'email', 'name')
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {'fields': ('name', 'bio', 'avatar', 'cover_image', 'location', 'website', 'birthdate')}),
        ('Status', {'fields': ('is_verified', 'last_active')}),
    )
    actions = ['activate_users', 'deactivate_users', 'mark_verified']

    def activate_users(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} users activated")
    activate_users.short_description = "Activate selected users"

    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} users deactivated")
    deactivate_users.short_description = "Deactivate selected users"

    def mark_verified(self, request, queryset):
        updated = queryset.update(is_verified=True, email_verification_token=None)
        self.message_user(request, f"{updated} users marked verified")
    mark_verified.short_description = "Mark selected users as verified"


class PostMediaInline(admin.TabularInline):
    model = PostMedia
    extra = 0


class PollOptionInline(admin.TabularInline):
    model = PollOption
    extra = 0
    exclude = ('votes',)


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('id', 'author_link', 'created_at', 'kind', 'content_short', 'is_deleted')
    list_filter = ('is_deleted', 'is_repost', 'is_reply', 'is_quote', 'visibility')
    search_fields = ('content', 'author__username')
    raw_id_fields = ('author', 'original_post', 'parent_post', 'quoted_post')
    filter_horizontal = ('likes', 'reposts', 'mentions')
    inlines = [PostMediaInline, PollOptionInline]
    actions = ['soft_delete', 'restore']

    def author_link(self, obj):
        url = reverse("admin:chirp_user_change", args=[obj.author_id])
        return format_html('<a href="{}">{}</a>', url, obj.author.username)
    author_link.short_description = 'Author'
    author_link.admin_order_field = 'author__username'

    def kind(self, obj):
        if obj.is_repost:
            return "repost"
        if obj.is_reply:
            return "reply"
        if obj.is_quote:
            return "quote"
        return "post"

    def content_short(self, obj):
        if obj.content:
            return obj.content[:80] + '...' if len(obj.content) > 80 else obj.content
        return "(no content)"
    content_short.short_description = 'Content'

    def soft_delete(self, request, queryset):
        updated = queryset.filter(is_deleted=False).update(is_deleted=True, deleted_at=timezone.now())
        self.message_user(request, f"{updated} posts deleted")
    soft_delete.short_description = "Soft delete selected posts"

    def restore(self, request, queryset):
        updated = queryset.filter(is_deleted=True).update(is_deleted=False, deleted_at=None)
        self.message_user(request, f"{updated} posts restored")
    restore.short_description = "Restore selected posts"

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'recipient', 'sender', 'type', 'post', 'created_at', 'read')
    list_filter = ('type', 'read', 'created_at')
    search_fields = ('recipient__username', 'sender__username')
    raw_id_fields = ('recipient', 'sender', 'post', 'comment')

@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'sender', 'created_at', 'content_short', 'read_at')
    list_filter = ('created_at',)
    search_fields = ('content', 'sender__username')

    def content_short(self, obj):
        return obj.content[:50] + '...' if len(obj.content) > 50 else obj.content
    content_short.short_description = 'Content'

@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'is_group', 'created_by', 'updated_at', 'member_count')
    list_filter = ('is_group', 'created_at')
    search_fields = ('name', 'created_by__username')

    def member_count(self, obj):
        return obj.members.count()
    member_count.short_description = 'Members'

@admin.register(ConversationMember)
class ConversationMemberAdmin(admin.ModelAdmin):
    list_display = ('id', 'conversation', 'user', 'joined_at', 'last_read_at')
    search_fields = ('conversation__name', 'user__username')

@admin.register(Block)
class BlockAdmin(admin.ModelAdmin):
    list_display = ('id', 'blocker', 'blocked', 'timestamp')
    search_fields = ('blocker__username', 'blocked__username')

@admin.register(Follow)
class FollowAdmin(admin.ModelAdmin):
    list_display = ('id', 'follower', 'followed', 'created_at')
    search_fields = ('follower__username', 'followed__username')

# Unregister Django's default Group
admin.site.unregister(Group)

admin.site.site_header = "Chirp Admin"
admin.site.site_title = "Chirp Admin Portal"
admin.site.index_title = "Welcome"
